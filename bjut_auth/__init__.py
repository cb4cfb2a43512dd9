from .decoder import contains_success_marker, decode_jsonp, extract_html_field
from .errors import (
    DecodeError,
    PolicyError,
    PortalAuthError,
    ProbeError,
    ProtocolError,
    QueryError,
    TransportError,
)
from .models import (
    ConnectivityState,
    Credentials,
    LoginOutcome,
    PORTAL_NAMES,
    TrafficInfo,
)
from .orchestrator import Orchestrator, adaptive_login, dormitory_logout, plan_strategy
from .probes import probe_connectivity, probe_reachability
from .traffic import query_traffic

__version__ = "0.3.0"

__all__ = [
    "ConnectivityState",
    "Credentials",
    "DecodeError",
    "LoginOutcome",
    "Orchestrator",
    "PORTAL_NAMES",
    "PolicyError",
    "PortalAuthError",
    "ProbeError",
    "ProtocolError",
    "QueryError",
    "TrafficInfo",
    "TransportError",
    "adaptive_login",
    "contains_success_marker",
    "decode_jsonp",
    "dormitory_logout",
    "extract_html_field",
    "plan_strategy",
    "probe_connectivity",
    "probe_reachability",
    "query_traffic",
]
