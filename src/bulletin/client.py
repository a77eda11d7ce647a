"""Thin HTTP client for a running bulletin server."""

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, List

from .registry import ServiceEntry


class BulletinClient:
    """Registers, removes and lists services over the bulletin HTTP API."""

    def __init__(self, host: str = "localhost", port: int = 8087, timeout: float = 10):
        self._base = f"http://{host}:{port}"
        self._timeout = timeout
        self._opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))

    def _get(self, path: str, params: dict | None = None) -> Any:
        url = f"{self._base}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        with self._opener.open(url, timeout=self._timeout) as resp:
            return json.loads(resp.read().decode())

    def add_service(self, name: str, url: str) -> bool:
        # The server decodes the url value once more after query parsing.
        params = {"name": name, "url": urllib.parse.quote(url, safe="")}
        try:
            data = self._get("/add", params)
        except (urllib.error.URLError, OSError, ValueError):
            return False
        return data.get("status") == "true"

    def delete_service(self, name: str) -> bool:
        try:
            data = self._get("/del", {"name": name})
        except (urllib.error.URLError, OSError, ValueError):
            return False
        return data.get("status") == "true"

    def list_services(self) -> List[ServiceEntry]:
        try:
            data = self._get("/services")
            return [ServiceEntry.from_dict(d) for d in data]
        except (urllib.error.URLError, OSError, KeyError, ValueError):
            return []
