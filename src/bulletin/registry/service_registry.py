"""
Concurrent Service Registry

This module provides:
- ServiceStatus: liveness values reported by the prober
- ServiceEntry: one registered service (name, url, status)
- ServiceRegistry: a dict-backed registry guarded by a single lock, which
  writes its full state to the backing store on every mutation
"""

import logging
import threading
from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ServiceStatus(Enum):
    """Service liveness status"""
    ON = "on"
    OFF = "off"


@dataclass(frozen=True)
class ServiceEntry:
    """A registered service"""
    name: str
    url: str
    status: str = ServiceStatus.OFF.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serialisable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServiceEntry':
        """Create from dictionary."""
        status = ServiceStatus(data.get("status", ServiceStatus.OFF.value))
        return cls(name=str(data["name"]), url=str(data["url"]), status=status.value)


class ServiceRegistry:
    """Thread-safe registry of services keyed by name.

    All reads and writes of the mapping happen under ``_lock``.  A mutation
    and the store write it triggers share one critical section, so the file
    on disk is always written in mutation order.  Entries are immutable and
    are replaced on update, which lets ``snapshot`` hand out shallow copies.
    """

    def __init__(self, store=None, services: Optional[Dict[str, ServiceEntry]] = None):
        self._lock = threading.Lock()
        self._store = store
        self._services: Dict[str, ServiceEntry] = dict(services or {})

    @classmethod
    def from_store(cls, store) -> 'ServiceRegistry':
        """Create a registry holding whatever *store* has persisted."""
        services = store.load()
        logger.info("Loaded %d service(s) from %s", len(services), store.path)
        return cls(store=store, services=services)

    def _persist(self) -> None:
        # Caller holds self._lock.
        if self._store is None:
            return
        self._store.save(self._services)

    def set_url(self, name: str, url: str) -> None:
        """Create *name* with status ``off``, or change the URL of an existing entry."""
        with self._lock:
            entry = self._services.get(name)
            if entry is None:
                entry = ServiceEntry(name=name, url=url)
            else:
                entry = replace(entry, url=url)
            self._services[name] = entry
            self._persist()

    def set_status(self, name: str, status: ServiceStatus) -> bool:
        """Update the status of an existing entry; unknown names are ignored."""
        with self._lock:
            entry = self._services.get(name)
            if entry is None:
                return False
            self._services[name] = replace(entry, status=status.value)
            self._persist()
        return True

    def delete(self, name: str) -> bool:
        with self._lock:
            if self._services.pop(name, None) is None:
                return False
            self._persist()
        return True

    def snapshot(self) -> Dict[str, ServiceEntry]:
        """Return a point-in-time copy of all entries."""
        with self._lock:
            return dict(self._services)

    def get_service(self, name: str) -> Optional[ServiceEntry]:
        with self._lock:
            return self._services.get(name)

    def get_service_count(self) -> int:
        with self._lock:
            return len(self._services)
