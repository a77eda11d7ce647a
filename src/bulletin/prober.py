"""Background liveness prober for registered services."""

import http.client
import logging
import threading
import time
import urllib.error
import urllib.request
from typing import Dict, Optional

from .registry import ServiceRegistry, ServiceStatus

logger = logging.getLogger(__name__)

PROBE_INTERVAL = 5
PROBE_TIMEOUT = 5


def _build_opener() -> urllib.request.OpenerDirector:
    # Bypass http_proxy env vars; probes go straight to the service.
    return urllib.request.build_opener(urllib.request.ProxyHandler({}))


def probe_url(
    url: str,
    timeout: float = PROBE_TIMEOUT,
    opener: Optional[urllib.request.OpenerDirector] = None,
) -> ServiceStatus:
    """GET *url* once.  Only a 200 response within *timeout* counts as ``on``."""
    if opener is None:
        opener = _build_opener()
    try:
        with opener.open(url, timeout=timeout) as resp:
            if resp.status == 200:
                return ServiceStatus.ON
            logger.debug("Probe %s: unexpected status %d", url, resp.status)
    except urllib.error.HTTPError as e:
        logger.debug("Probe %s: unexpected status %d", url, e.code)
    except (urllib.error.URLError, OSError, http.client.HTTPException, ValueError) as e:
        logger.debug("Probe %s failed: %s", url, e)
    return ServiceStatus.OFF


def probe_all(
    registry: ServiceRegistry,
    timeout: float = PROBE_TIMEOUT,
    opener: Optional[urllib.request.OpenerDirector] = None,
) -> Dict[str, ServiceStatus]:
    """Probe every entry of a registry snapshot and record the results.

    Returns the status observed for each probed name.  Entries removed while
    the tick is running are left removed.
    """
    if opener is None:
        opener = _build_opener()
    results: Dict[str, ServiceStatus] = {}
    for name, entry in registry.snapshot().items():
        status = probe_url(entry.url, timeout=timeout, opener=opener)
        results[name] = status
        if status.value != entry.status:
            logger.info("%s: %s -> %s", name, entry.status, status.value)
        registry.set_status(name, status)
    return results


def run_prober(
    registry: ServiceRegistry,
    interval: float = PROBE_INTERVAL,
    timeout: float = PROBE_TIMEOUT,
) -> None:
    """Probe all services every *interval* seconds, forever.

    The first tick happens one interval after the call.
    """
    opener = _build_opener()
    while True:
        time.sleep(interval)
        try:
            probe_all(registry, timeout=timeout, opener=opener)
        except Exception:
            logger.exception("Status probe tick failed")


def start_prober(
    registry: ServiceRegistry,
    interval: float = PROBE_INTERVAL,
    timeout: float = PROBE_TIMEOUT,
) -> threading.Thread:
    """Run the prober in a daemon thread and return the thread."""
    thread = threading.Thread(
        target=run_prober,
        args=(registry, interval, timeout),
        name="bulletin-prober",
        daemon=True,
    )
    thread.start()
    return thread
