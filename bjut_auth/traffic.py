import logging
from typing import Any, Dict, Optional

import requests

from .adapters import EPORTAL_JS_VERSION, build_session, cache_buster, send_request
from .decoder import decode_jsonp
from .errors import QueryError
from .models import TrafficInfo
from .settings import DEFAULT_SETTINGS

default_logger = logging.getLogger("bjut_auth.traffic")

UNKNOWN = "Unknown"

# Dormitory service plans as named by the eportal, and their monthly quota.
PLAN_QUOTAS: Dict[str, str] = {
    "学生宿舍-20元包月": "30 GB",
    "学生宿舍-30元包月": "60 GB",
    "学生宿舍-50元包月": "150 GB",
    "学生宿舍-不限量": "Unlimited",
    "教职工宿舍-包月": "Unlimited",
}


def lookup_quota(plan: str) -> str:
    return PLAN_QUOTAS.get((plan or "").strip(), UNKNOWN)


def field_or_unknown(section: Dict[str, Any], key: str) -> str:
    value = section.get(key)
    if value is None or value == "":
        return UNKNOWN
    return str(value)


def parse_user_info(body: str) -> TrafficInfo:
    data = decode_jsonp(body)
    user_info = data.get("user_info") if isinstance(data, dict) else None
    if not isinstance(user_info, dict):
        raise QueryError("Portal returned no user info")
    plan = str(user_info.get("service_name") or "")
    return TrafficInfo(
        used_traffic=field_or_unknown(user_info, "used_flow"),
        total_traffic=lookup_quota(plan),
        balance=field_or_unknown(user_info, "balance"),
        plan=plan,
    )


def query_traffic(
    session: Optional[requests.Session] = None,
    settings: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> TrafficInfo:
    settings = settings or DEFAULT_SETTINGS
    session = session or build_session(settings)
    logger = logger or default_logger
    eportal_url = settings.get("dormitory", {}).get("eportal_url", "").rstrip("/")
    timeout = settings.get("http", {}).get("login_timeout_seconds", 5)
    params = {
        "callback": "dr1005",
        "lang": "zh",
        "jsVersion": EPORTAL_JS_VERSION,
        "v": cache_buster(),
    }
    logger.info("Querying dormitory traffic usage...")
    response = send_request(session, "GET", f"{eportal_url}/page/loadUserInfo", timeout, params=params)
    info = parse_user_info(response.text)
    logger.info(
        "Traffic: used=%s total=%s balance=%s",
        info.used_traffic,
        info.total_traffic,
        info.balance,
    )
    return info
