from __future__ import annotations

import json
import threading
from pathlib import Path

from bulletin.registry import JsonFileStore, ServiceEntry, ServiceRegistry, ServiceStatus


class RecordingStore:
    """Store double that records every saved state."""

    path = "memory"

    def __init__(self, initial=None):
        self.initial = dict(initial or {})
        self.saves: list[dict] = []

    def load(self):
        return dict(self.initial)

    def save(self, entries):
        self.saves.append(dict(entries))
        return True


class FailingStore(RecordingStore):
    def save(self, entries):
        super().save(entries)
        return False


def test_set_url_creates_entry_with_status_off() -> None:
    registry = ServiceRegistry()
    registry.set_url("svc1", "http://x")

    assert registry.snapshot() == {"svc1": ServiceEntry("svc1", "http://x", "off")}


def test_set_status_updates_existing_and_ignores_absent() -> None:
    registry = ServiceRegistry()
    registry.set_url("svc1", "http://x")

    assert registry.set_status("svc1", ServiceStatus.ON) is True
    assert registry.set_status("svc2", ServiceStatus.ON) is False

    assert registry.snapshot() == {"svc1": ServiceEntry("svc1", "http://x", "on")}


def test_set_url_preserves_existing_status() -> None:
    registry = ServiceRegistry()
    registry.set_url("svc1", "http://x")
    registry.set_status("svc1", ServiceStatus.ON)
    registry.set_url("svc1", "http://y")

    entry = registry.get_service("svc1")
    assert entry.url == "http://y"
    assert entry.status == "on"


def test_delete_returns_true_once() -> None:
    registry = ServiceRegistry()
    registry.set_url("svc1", "http://x")

    assert registry.delete("svc1") is True
    assert registry.delete("svc1") is False
    assert registry.get_service("svc1") is None
    assert registry.get_service_count() == 0


def test_snapshot_is_detached_from_registry() -> None:
    registry = ServiceRegistry()
    registry.set_url("svc1", "http://x")

    snap = registry.snapshot()
    snap.clear()
    registry.set_url("svc2", "http://y")

    assert sorted(registry.snapshot()) == ["svc1", "svc2"]
    assert snap == {}


def test_every_mutation_is_persisted_in_order() -> None:
    store = RecordingStore()
    registry = ServiceRegistry(store=store)

    registry.set_url("svc1", "http://x")
    registry.set_status("svc1", ServiceStatus.ON)
    registry.set_status("missing", ServiceStatus.ON)
    registry.delete("missing")
    registry.delete("svc1")

    assert store.saves == [
        {"svc1": ServiceEntry("svc1", "http://x", "off")},
        {"svc1": ServiceEntry("svc1", "http://x", "on")},
        {},
    ]


def test_failed_save_keeps_in_memory_change() -> None:
    registry = ServiceRegistry(store=FailingStore())
    registry.set_url("svc1", "http://x")

    assert registry.get_service("svc1") == ServiceEntry("svc1", "http://x", "off")


def test_from_store_loads_prior_state() -> None:
    store = RecordingStore({"svc1": ServiceEntry("svc1", "http://x", "on")})
    registry = ServiceRegistry.from_store(store)

    assert registry.get_service("svc1").status == "on"


def test_file_backed_registry_writes_through(tmp_path: Path) -> None:
    path = tmp_path / "services.json"
    registry = ServiceRegistry.from_store(JsonFileStore(path))

    registry.set_url("svc1", "http://x")
    assert json.loads(path.read_text()) == {"svc1": {"URL": "http://x", "Status": "off"}}

    registry.set_status("svc1", ServiceStatus.ON)
    assert json.loads(path.read_text())["svc1"]["Status"] == "on"

    reloaded = ServiceRegistry.from_store(JsonFileStore(path))
    assert reloaded.snapshot() == registry.snapshot()


def test_concurrent_mutations_only_create_registered_keys() -> None:
    store = RecordingStore()
    registry = ServiceRegistry(store=store)
    names = [f"svc{i}" for i in range(8)]

    def writer(name: str) -> None:
        for i in range(200):
            registry.set_url(name, f"http://{name}/{i}")
            registry.set_status(name, ServiceStatus.ON if i % 2 else ServiceStatus.OFF)
            registry.set_status(f"ghost-{name}", ServiceStatus.ON)
            if i % 50 == 0:
                registry.delete(name)

    threads = [threading.Thread(target=writer, args=(n,)) for n in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snap = registry.snapshot()
    assert set(snap) == set(names)
    for name, entry in snap.items():
        assert entry.name == name
        assert entry.url == f"http://{name}/199"
        assert entry.status == "on"
    # The last save reflects the final state.
    assert store.saves[-1] == snap
