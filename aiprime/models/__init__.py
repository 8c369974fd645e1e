# Database models package
from aiprime.models.state import StateEntry

__all__ = [
    "StateEntry",
]
