from dataclasses import dataclass
from typing import Dict, Optional

DORMITORY = "dormitory"
CAMPUS_WIFI = "campus_wifi"
IPV6_ONLY = "ipv6_only"
DUAL_STACK = "dual_stack"

PORTAL_NAMES = (DORMITORY, CAMPUS_WIFI, IPV6_ONLY, DUAL_STACK)

PortalReachability = Dict[str, bool]


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str
    operator: str = "campus"

    @property
    def account(self) -> str:
        if not self.operator:
            return self.username
        return f"{self.username}@{self.operator}"


@dataclass(frozen=True)
class ConnectivityState:
    ipv4_reachable: bool
    ipv6_reachable: bool

    @property
    def fully_online(self) -> bool:
        return self.ipv4_reachable and self.ipv6_reachable


@dataclass
class LoginOutcome:
    success: bool
    message: str
    portal: str
    code: str = ""


@dataclass
class PortalResponse:
    result_code: str = ""
    raw_message: str = ""
    error_code: str = ""
    success_marker_found: bool = False
    extracted_field: Optional[str] = None


@dataclass
class TrafficInfo:
    used_traffic: str
    total_traffic: str
    balance: str
    plan: str = ""


def empty_reachability() -> PortalReachability:
    return {name: False for name in PORTAL_NAMES}
