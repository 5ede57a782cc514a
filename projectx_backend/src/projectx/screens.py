from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Generic, Iterable, List, Optional, Tuple, TypeVar

from .capabilities import CalendarAccess, CapabilityResult, CapabilityStatus
from .models import Event, Record
from .store import MutationResult, RecordStore

T = TypeVar("T", bound=Record)


# PUBLIC_INTERFACE
class ListScreen(Generic[T]):
    """
    A searchable list over one store.

    displayed is recomputed from the store on every access, so it always
    reflects the current search text and collection. Deletions take positions
    in displayed, never in the underlying collection.
    """

    def __init__(self, store: RecordStore[T], search_text: str = "") -> None:
        self.store = store
        self.search_text = search_text

    def activate(self) -> List[T]:
        return self.store.load()

    @property
    def displayed(self) -> List[T]:
        return self.store.search(self.search_text)

    def delete(self, positions: Iterable[int]) -> MutationResult:
        return self.store.delete_displayed(positions, self.displayed)


# PUBLIC_INTERFACE
class CalendarScreen:
    """
    Day view over a calendar provider.

    activate() asks for access once; while access is not granted the event
    list stays empty and add_event reports the denial.
    """

    def __init__(self, calendar: CalendarAccess, selected_date: Optional[date] = None) -> None:
        self.calendar = calendar
        self.selected_date = selected_date or date.today()
        self.access: Optional[CapabilityStatus] = None
        self.events: List[Event] = []

    def activate(self) -> CapabilityResult[None]:
        result = self.calendar.request_access()
        self.access = result.status
        self.refresh()
        return result

    def day_range(self) -> Tuple[datetime, datetime]:
        start = datetime.combine(self.selected_date, time.min)
        return start, start + timedelta(days=1)

    def select_date(self, day: date) -> List[Event]:
        self.selected_date = day
        return self.refresh()

    def refresh(self) -> List[Event]:
        if self.access is CapabilityStatus.GRANTED:
            self.events = self.calendar.events_between(*self.day_range())
        else:
            self.events = []
        return self.events

    def add_event(self, event: Event) -> CapabilityResult[MutationResult]:
        result = self.calendar.save_event(event)
        if result.granted:
            self.refresh()
        return result
