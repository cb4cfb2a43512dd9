import concurrent.futures
import logging
from typing import Any, Dict, Mapping, Optional

import requests

from .models import ConnectivityState, PortalReachability, PORTAL_NAMES
from .settings import DEFAULT_SETTINGS

default_logger = logging.getLogger("bjut_auth.probes")

IPV4_CHECK_URL = DEFAULT_SETTINGS["connectivity"]["ipv4_url"]
IPV6_CHECK_URL = DEFAULT_SETTINGS["connectivity"]["ipv6_url"]
PORTAL_URLS: Dict[str, str] = dict(DEFAULT_SETTINGS["portals"])


def check_url(http: Any, url: str, timeout: float) -> bool:
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException:
        return False
    return response.status_code == 200


def check_portal(http: Any, url: str, timeout: float) -> bool:
    try:
        http.get(url, timeout=timeout, allow_redirects=False)
    except requests.RequestException:
        return False
    return True


def run_probes(
    probe: Any,
    http: Any,
    targets: Mapping[str, str],
    timeout: float,
    logger: logging.Logger,
) -> Dict[str, bool]:
    results = {name: False for name in targets}
    if not targets:
        return results
    with concurrent.futures.ThreadPoolExecutor(max_workers=len(targets)) as executor:
        future_to_name = {
            executor.submit(probe, http, url, timeout): name
            for name, url in targets.items()
        }
        for future in concurrent.futures.as_completed(future_to_name):
            name = future_to_name[future]
            try:
                results[name] = bool(future.result())
            except Exception as exc:
                logger.debug("Probe %s raised %s", name, exc)
                results[name] = False
    return results


def probe_connectivity(
    http: Any = requests,
    timeout: float = 5,
    ipv4_url: str = IPV4_CHECK_URL,
    ipv6_url: str = IPV6_CHECK_URL,
    logger: Optional[logging.Logger] = None,
) -> ConnectivityState:
    logger = logger or default_logger
    logger.info("Checking IPv4/IPv6 connectivity...")
    results = run_probes(
        check_url,
        http,
        {"ipv4": ipv4_url, "ipv6": ipv6_url},
        timeout,
        logger,
    )
    state = ConnectivityState(
        ipv4_reachable=results["ipv4"],
        ipv6_reachable=results["ipv6"],
    )
    logger.info(
        "Connectivity: IPv4=%s IPv6=%s",
        "up" if state.ipv4_reachable else "down",
        "up" if state.ipv6_reachable else "down",
    )
    return state


def probe_reachability(
    http: Any = requests,
    timeout: float = 1,
    portals: Optional[Mapping[str, str]] = None,
    logger: Optional[logging.Logger] = None,
) -> PortalReachability:
    logger = logger or default_logger
    targets = dict(portals if portals is not None else PORTAL_URLS)
    logger.info("Probing %d login servers...", len(targets))
    results = run_probes(check_portal, http, targets, timeout, logger)
    reachability = {name: results.get(name, False) for name in PORTAL_NAMES}
    logger.info(
        "Reachable login servers: %s",
        ", ".join(name for name, ok in reachability.items() if ok) or "none",
    )
    return reachability
