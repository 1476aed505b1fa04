"""Database layer."""

from .models import SCHEMA
from .repository import PoolSnapshot, Repository, RepositorySink

__all__ = ["SCHEMA", "PoolSnapshot", "Repository", "RepositorySink"]
