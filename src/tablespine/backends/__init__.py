"""Database handle implementations."""

from .map import MapDatabase
from .relational import RelationalDatabase

__all__ = [
    "MapDatabase",
    "RelationalDatabase",
]
