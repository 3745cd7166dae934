"""
shortmap package initializer.
"""

from . import manager
from . import storage
from .manager.engine import MappingEngine, create_engine
from .storage.base import Record

__all__ = ["manager", "storage", "MappingEngine", "create_engine", "Record"]
