import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import requests

from .adapters import (
    CampusWlgnAdapter,
    DormitoryAdapter,
    DualStackAdapter,
    Ipv6OnlyAdapter,
    build_session,
)
from .errors import PolicyError, ProbeError
from .models import (
    CAMPUS_WIFI,
    DORMITORY,
    DUAL_STACK,
    IPV6_ONLY,
    ConnectivityState,
    Credentials,
    LoginOutcome,
    PortalReachability,
    empty_reachability,
)
from .probes import probe_connectivity, probe_reachability
from .retry import StaleSessionRetry
from .settings import DEFAULT_SETTINGS

default_logger = logging.getLogger("bjut_auth.orchestrator")

LOGIN = "login"
LOGOUT = "logout"

ALREADY_ONLINE_MESSAGE = "IPv4 and IPv6 are both reachable, session already appears authenticated"
NO_SERVER_MESSAGE = "No reachable login server"


@dataclass(frozen=True)
class Step:
    portal: str
    action: str = LOGIN


@dataclass
class Strategy:
    name: str
    steps: List[Step] = field(default_factory=list)


def plan_strategy(
    connectivity: ConnectivityState,
    reachability: PortalReachability,
) -> Strategy:
    """Pick which adapters to run, in order.

    Connectivity says what is broken, reachability says which gateway we sit
    behind. Raises ``PolicyError`` when something is broken and no gateway
    answered at all.
    """
    if connectivity.fully_online:
        return Strategy("already_online")

    if connectivity.ipv4_reachable:
        return Strategy("restore_ipv6", [Step(IPV6_ONLY)])

    if not connectivity.ipv6_reachable:
        if reachability.get(DORMITORY):
            return Strategy("dormitory", [Step(DORMITORY)])
        if reachability.get(CAMPUS_WIFI):
            return Strategy("campus_wifi_then_ipv6", [Step(CAMPUS_WIFI), Step(IPV6_ONLY)])
        return dual_stack_fallback(reachability)

    # IPv6 up, IPv4 down: half-authenticated.
    if reachability.get(DORMITORY):
        return Strategy("dormitory_relogin", [Step(DORMITORY, LOGOUT), Step(DORMITORY)])
    if reachability.get(CAMPUS_WIFI):
        return Strategy("campus_wifi", [Step(CAMPUS_WIFI)])
    return dual_stack_fallback(reachability)


def dual_stack_fallback(reachability: PortalReachability) -> Strategy:
    # Dual-stack logs in through lgn6 as well, so either probe answering will do.
    if reachability.get(DUAL_STACK) or reachability.get(IPV6_ONLY):
        return Strategy("dual_stack", [Step(DUAL_STACK)])
    raise PolicyError(NO_SERVER_MESSAGE)


def aggregate(outcomes: List[LoginOutcome]) -> LoginOutcome:
    last = outcomes[-1]
    failed = [outcome for outcome in outcomes if not outcome.success]
    if not failed:
        return last
    return LoginOutcome(
        False,
        "; ".join(outcome.message for outcome in failed),
        last.portal,
        code=failed[-1].code,
    )


def build_dormitory(
    settings: Dict[str, Any],
    session: requests.Session,
    logger: Optional[logging.Logger] = None,
) -> StaleSessionRetry:
    dormitory = settings.get("dormitory", {})
    return StaleSessionRetry(
        DormitoryAdapter(
            session,
            dormitory.get("eportal_url", ""),
            status_page=dormitory.get("status_page", ""),
            mac=settings.get("login", {}).get("mac", ""),
            timeout=settings.get("http", {}).get("login_timeout_seconds", 5),
            logger=logger,
        ),
        stale_code=str(dormitory.get("stale_session_code", "2")),
        logger=logger,
    )


def build_adapters(
    settings: Dict[str, Any],
    session: requests.Session,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    timeout = settings.get("http", {}).get("login_timeout_seconds", 5)
    ipv6 = settings.get("ipv6", {})
    marker = settings.get("markers", {}).get("success", "")
    return {
        DORMITORY: build_dormitory(settings, session, logger),
        CAMPUS_WIFI: CampusWlgnAdapter(
            session,
            settings.get("campus_wifi", {}).get("login_url", ""),
            timeout=timeout,
            logger=logger,
        ),
        IPV6_ONLY: Ipv6OnlyAdapter(
            session,
            ipv6.get("login_url", ""),
            ipv6.get("referer", ""),
            marker,
            timeout=timeout,
            logger=logger,
        ),
        DUAL_STACK: DualStackAdapter(
            session,
            ipv6.get("login_url", ""),
            ipv6.get("referer", ""),
            ipv6.get("primary_url", ""),
            ipv6.get("primary_referer", ""),
            marker,
            token_field=ipv6.get("token_field", "v6ip"),
            timeout=timeout,
            logger=logger,
        ),
    }


class Orchestrator:
    def __init__(
        self,
        adapters: Mapping[str, Any],
        connectivity_probe: Callable[[], ConnectivityState],
        reachability_probe: Callable[[], PortalReachability],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.adapters = adapters
        self.connectivity_probe = connectivity_probe
        self.reachability_probe = reachability_probe
        self.logger = logger or default_logger

    @classmethod
    def from_settings(
        cls,
        settings: Dict[str, Any],
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "Orchestrator":
        session = session or build_session(settings)
        http = settings.get("http", {})
        connectivity = settings.get("connectivity", {})

        def connectivity_probe() -> ConnectivityState:
            return probe_connectivity(
                timeout=http.get("connectivity_timeout_seconds", 5),
                ipv4_url=connectivity.get("ipv4_url", ""),
                ipv6_url=connectivity.get("ipv6_url", ""),
                logger=logger,
            )

        def reachability_probe() -> PortalReachability:
            return probe_reachability(
                timeout=http.get("reachability_timeout_seconds", 1),
                portals=settings.get("portals", {}),
                logger=logger,
            )

        return cls(
            build_adapters(settings, session, logger),
            connectivity_probe,
            reachability_probe,
            logger=logger,
        )

    def probe(self) -> Tuple[ConnectivityState, PortalReachability]:
        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            connectivity_future = executor.submit(self.connectivity_probe)
            reachability_future = executor.submit(self.reachability_probe)
            connectivity_error: Optional[Exception] = None
            reachability_error: Optional[Exception] = None
            try:
                connectivity = connectivity_future.result()
            except Exception as exc:
                connectivity_error = exc
                connectivity = ConnectivityState(False, False)
            try:
                reachability = reachability_future.result()
            except Exception as exc:
                reachability_error = exc
                reachability = empty_reachability()

        if connectivity_error and reachability_error:
            raise ProbeError(
                f"Network probing failed: {connectivity_error}; {reachability_error}"
            ) from reachability_error
        if connectivity_error:
            self.logger.warning("Connectivity probe failed, assuming offline: %s", connectivity_error)
        if reachability_error:
            self.logger.warning("Login server probe failed, assuming none reachable: %s", reachability_error)
        return connectivity, reachability

    def login(self, credentials: Credentials) -> LoginOutcome:
        connectivity, reachability = self.probe()
        try:
            strategy = plan_strategy(connectivity, reachability)
        except PolicyError as exc:
            self.logger.error("%s", exc)
            return LoginOutcome(False, str(exc), "")

        self.logger.info("Selected strategy: %s", strategy.name)
        if not strategy.steps:
            self.logger.info(ALREADY_ONLINE_MESSAGE)
            return LoginOutcome(True, ALREADY_ONLINE_MESSAGE, "")
        return self.run(strategy, credentials)

    def run(self, strategy: Strategy, credentials: Credentials) -> LoginOutcome:
        outcomes: List[LoginOutcome] = []
        for step in strategy.steps:
            adapter = self.adapters[step.portal]
            if step.action == LOGOUT:
                # Clears a half-authenticated session; the login that follows decides.
                adapter.logout()
                continue
            outcomes.append(adapter.login(credentials))
        return aggregate(outcomes)


def adaptive_login(
    credentials: Credentials,
    settings: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> LoginOutcome:
    return Orchestrator.from_settings(settings or DEFAULT_SETTINGS, logger=logger).login(credentials)


def dormitory_logout(
    settings: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> LoginOutcome:
    settings = settings or DEFAULT_SETTINGS
    return build_dormitory(settings, build_session(settings), logger).logout()
