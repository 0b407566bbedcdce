"""Single-table to-do list: FastAPI backend and an optimistic async client."""

__version__ = "0.1.0"
