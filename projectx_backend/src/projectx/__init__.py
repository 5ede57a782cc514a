"""
ProjectX backend package.

Record stores for the calendar, notes, captures, whiteboards and todo screens,
persisted into a key-value preference store and served by the FastAPI app in
src.projectx.main.
"""
