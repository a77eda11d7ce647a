"""JSON file persistence for the service registry."""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping

from .service_registry import ServiceEntry, ServiceStatus

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


class MalformedStoreError(ValueError):
    """Raised when the store file does not hold a service mapping."""


def _entry_from_record(name: str, record: Any) -> ServiceEntry:
    # Files from the status-less variant map names to bare URLs or to
    # records without a Status field.
    if isinstance(record, str):
        return ServiceEntry(name=name, url=record)
    if not isinstance(record, dict):
        raise MalformedStoreError(f"record for {name!r} is not an object")
    url = record.get("URL")
    if not isinstance(url, str):
        raise MalformedStoreError(f"record for {name!r} has no URL")
    status = record.get("Status", ServiceStatus.OFF.value)
    try:
        status = ServiceStatus(status)
    except ValueError:
        raise MalformedStoreError(f"record for {name!r} has unknown status {status!r}") from None
    return ServiceEntry(name=name, url=url, status=status.value)


def _entry_to_record(entry: ServiceEntry) -> Dict[str, str]:
    return {"URL": entry.url, "Status": entry.status}


class JsonFileStore:
    """Reads and writes the whole registry as one JSON document.

    The file maps service names to ``{"URL": ..., "Status": ...}`` records.
    Each save replaces the file via a temporary sibling and ``os.replace``.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Dict[str, ServiceEntry]:
        """Return the persisted entries, or an empty dict if there are none
        or the file cannot be understood."""
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning("Registry file %s does not exist, starting empty", self.path)
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Cannot read registry file %s: %s", self.path, e)
            return {}

        try:
            if not isinstance(data, dict):
                raise MalformedStoreError("top level is not an object")
            return {
                str(name): _entry_from_record(str(name), record)
                for name, record in data.items()
            }
        except MalformedStoreError as e:
            logger.warning("Ignoring malformed registry file %s: %s", self.path, e)
            return {}

    def _file_mode(self) -> int:
        # Keep the permissions of an existing file; mkstemp creates 0600.
        try:
            return stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            return DEFAULT_FILE_MODE

    def save(self, entries: Mapping[str, ServiceEntry]) -> bool:
        """Overwrite the file with *entries*.  Failures are logged, not raised."""
        try:
            content = json.dumps(
                {name: _entry_to_record(e) for name, e in entries.items()},
                indent=2,
                sort_keys=True,
            )
        except (TypeError, ValueError) as e:
            logger.error("Cannot serialise registry: %s", e)
            return False

        dir_path = self.path.parent
        try:
            os.makedirs(dir_path, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=dir_path, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.chmod(tmp_path, self._file_mode())
                os.replace(tmp_path, self.path)
            except OSError:
                os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error("Cannot write registry file %s: %s", self.path, e)
            return False
        return True
