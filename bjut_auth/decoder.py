import json
import re
from html.parser import HTMLParser
from typing import Any, Dict, Optional, Tuple

from .errors import DecodeError

GENERIC_DECODE_MESSAGE = "Unrecognised response from login server"

JSONP_RE = re.compile(r"^\s*[A-Za-z_$][\w$.]*\s*\((.*)\)\s*;?\s*$", re.DOTALL)
TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


class InputFieldParser(HTMLParser):
    def __init__(self, field_name: str) -> None:
        super().__init__()
        self.field_name = field_name
        self.value: Optional[str] = None

    def handle_starttag(self, tag: str, attrs: list[Tuple[str, Optional[str]]]) -> None:
        if self.value is not None or tag.lower() != "input":
            return
        attrs_dict: Dict[str, Optional[str]] = dict(attrs)
        if attrs_dict.get("name") == self.field_name:
            self.value = attrs_dict.get("value") or ""


def clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def unwrap_jsonp(body: str) -> str:
    match = JSONP_RE.match(body or "")
    if match:
        return match.group(1)
    return (body or "").strip()


def extract_title(body: str) -> Optional[str]:
    match = TITLE_RE.search(body or "")
    if not match:
        return None
    title = clean_text(match.group(1))
    return title or None


def decode_jsonp(body: str) -> Any:
    """Parse a ``callback({...})`` envelope into plain Python data.

    The callback name is not fixed: the eportal uses ``dr1002``/``dr1003``
    and friends, jQuery style names also occur. A body without any wrapper is
    parsed as bare JSON. When the payload is not JSON (usually an HTML error
    page served by the gateway) the raised ``DecodeError`` carries that page's
    ``<title>`` so the user gets something readable.
    """
    payload = unwrap_jsonp(body)
    try:
        return json.loads(payload)
    except ValueError as exc:
        message = extract_title(payload) or extract_title(body) or GENERIC_DECODE_MESSAGE
        raise DecodeError(message) from exc


def extract_html_field(body: str, field_name: str) -> Optional[str]:
    parser = InputFieldParser(field_name)
    parser.feed(body or "")
    parser.close()
    return parser.value


def contains_success_marker(body: str, marker: str) -> bool:
    if not marker:
        return False
    return marker in (body or "")


def extract_script_variable(body: str, name: str) -> Optional[str]:
    match = re.search(
        rf"\b{re.escape(name)}\s*=\s*['\"]([^'\"]*)['\"]",
        body or "",
    )
    return match.group(1) if match else None
