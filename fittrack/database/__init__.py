from .sqlite import SQLite

__all__ = ["SQLite"]
