import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from .models import CAMPUS_WIFI, DORMITORY, DUAL_STACK, IPV6_ONLY

logger = logging.getLogger("bjut_auth.settings")

MAC_RE = re.compile(r"[0-9A-F]{12}")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "log_level": "INFO",
    "login": {
        "username": "",
        "password": "",
        "operator": "campus",
        "mac": "",
    },
    "http": {
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        "login_timeout_seconds": 5,
        "connectivity_timeout_seconds": 5,
        "reachability_timeout_seconds": 1,
    },
    "connectivity": {
        "ipv4_url": "https://ipv4.quitsense.cn:10443/api/helloworld",
        "ipv6_url": "https://ipv6.quitsense.cn:10443/api/helloworld",
    },
    "portals": {
        DORMITORY: "http://10.21.221.98/",
        CAMPUS_WIFI: "https://wlgn.bjut.edu.cn/",
        IPV6_ONLY: "https://lgn6.bjut.edu.cn/",
        DUAL_STACK: "https://lgn.bjut.edu.cn/",
    },
    "dormitory": {
        "eportal_url": "http://10.21.221.98:801/eportal/portal",
        "status_page": "http://10.21.221.98/a79.htm",
        "stale_session_code": "2",
    },
    "campus_wifi": {
        "login_url": "https://wlgn.bjut.edu.cn/drcom/login",
    },
    "ipv6": {
        "login_url": "https://lgn6.bjut.edu.cn/V6?https://lgn.bjut.edu.cn",
        "referer": "https://lgn6.bjut.edu.cn/",
        "primary_url": "https://lgn.bjut.edu.cn/",
        "primary_referer": "https://lgn.bjut.edu.cn/",
        "token_field": "v6ip",
    },
    "markers": {
        "success": "successfully logged into our system",
    },
}


def merge_settings(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    if path is None or not path.is_file():
        if path is not None:
            logger.warning("Settings file not found, using defaults: %s", path)
        return copy.deepcopy(DEFAULT_SETTINGS)
    with path.open("r", encoding="utf-8") as f:
        return merge_settings(DEFAULT_SETTINGS, json.load(f))


def format_mac(mac: str) -> str:
    cleaned = re.sub(r"[\s:.-]", "", mac or "").upper()
    if not MAC_RE.fullmatch(cleaned):
        return "000000000000"
    return cleaned


def mask_value(value: str, keep: int = 2) -> str:
    if not value:
        return ""
    if len(value) <= keep * 2:
        return "*" * len(value)
    return f"{value[:keep]}***{value[-keep:]}"
