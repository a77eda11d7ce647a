"""
Service registry core

This package provides:
1. ServiceRegistry — lock-guarded registry with write-through persistence
2. JsonFileStore — JSON file backing store for the registry
3. ServiceEntry / ServiceStatus — the registered-service data model
"""

from .service_registry import (
    ServiceEntry,
    ServiceRegistry,
    ServiceStatus,
)
from .store import JsonFileStore

__all__ = [
    'JsonFileStore',
    'ServiceEntry',
    'ServiceRegistry',
    'ServiceStatus',
]
