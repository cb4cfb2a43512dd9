import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import requests

from .decoder import (
    contains_success_marker,
    decode_jsonp,
    extract_html_field,
    extract_script_variable,
    extract_title,
)
from .errors import DecodeError, PortalAuthError, ProtocolError, TransportError
from .models import (
    CAMPUS_WIFI,
    DORMITORY,
    DUAL_STACK,
    IPV6_ONLY,
    Credentials,
    LoginOutcome,
    PortalResponse,
)
from .settings import format_mac, mask_value

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}

EPORTAL_JS_VERSION = "4.2.1"
ZERO_MAC = "000000000000"

# Dual-stack flag understood by the lgn/lgn6 gateways.
V46S_BOTH = "0"
V46S_IPV6 = "2"


def build_session(settings: Dict[str, Any]) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": settings.get("http", {}).get("user_agent", "")})
    return session


def cache_buster() -> str:
    return str(random.randint(1000, 9999))


def send_request(
    session: requests.Session,
    method: str,
    url: str,
    timeout: float,
    **kwargs: Any,
) -> requests.Response:
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise TransportError(str(exc)) from exc
    return response


def interpret_jsonp(body: str) -> PortalResponse:
    data = decode_jsonp(body)
    if not isinstance(data, dict):
        raise DecodeError("Unexpected payload from login server")
    return PortalResponse(
        result_code=str(data.get("result", "")),
        raw_message=str(data.get("msg") or data.get("msga") or ""),
        error_code=str(data.get("ret_code", "")),
    )


class PortalAdapter(ABC):
    portal = ""

    def __init__(
        self,
        session: requests.Session,
        timeout: float = 5,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.logger = logger or logging.getLogger(f"bjut_auth.adapters.{self.portal}")

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        return send_request(self.session, method, url, self.timeout, **kwargs)

    def post_form(self, url: str, data: Dict[str, str], referer: str) -> requests.Response:
        headers = dict(FORM_HEADERS)
        if referer:
            headers["Referer"] = referer
        return self.request("POST", url, data=data, headers=headers)

    @abstractmethod
    def exchange(self, credentials: Credentials) -> LoginOutcome:
        """Run the portal's login exchange; protocol failures are raised."""

    def login(self, credentials: Credentials) -> LoginOutcome:
        self.logger.info(
            "Logging in to %s as %s", self.portal, mask_value(credentials.username)
        )
        outcome = self.guarded(lambda: self.exchange(credentials))
        if outcome.success:
            self.logger.info("%s login succeeded: %s", self.portal, outcome.message)
        else:
            self.logger.warning("%s login failed: %s", self.portal, outcome.message)
        return outcome

    def guarded(self, call: Callable[[], LoginOutcome]) -> LoginOutcome:
        try:
            return call()
        except ProtocolError as exc:
            return LoginOutcome(False, str(exc), self.portal, code=exc.code)
        except PortalAuthError as exc:
            return LoginOutcome(False, str(exc), self.portal)


class DormitoryAdapter(PortalAdapter):
    """Dr.COM eportal used by the dormitory gateway (JSONP over GET)."""

    portal = DORMITORY

    def __init__(
        self,
        session: requests.Session,
        eportal_url: str,
        status_page: str = "",
        mac: str = "",
        timeout: float = 5,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(session, timeout, logger)
        self.eportal_url = eportal_url.rstrip("/")
        self.status_page = status_page
        self.mac = format_mac(mac) if mac else ZERO_MAC

    def client_ip(self) -> str:
        # The gateway status page embeds the client address as `v46ip='...'`.
        if not self.status_page:
            return ""
        try:
            response = self.request("GET", self.status_page)
        except TransportError as exc:
            self.logger.debug("Could not read client address: %s", exc)
            return ""
        return extract_script_variable(response.text, "v46ip") or ""

    def exchange(self, credentials: Credentials) -> LoginOutcome:
        self.logger.debug("Using MAC address: %s", self.mac)
        params = {
            "callback": "dr1003",
            "login_method": "1",
            "user_account": credentials.account,
            "user_password": credentials.password,
            "wlan_user_ip": self.client_ip(),
            "wlan_user_ipv6": "",
            "wlan_user_mac": self.mac,
            "wlan_ac_ip": "",
            "wlan_ac_name": "",
            "jsVersion": EPORTAL_JS_VERSION,
            "terminal_type": "1",
            "lang": "zh-cn",
            "v": cache_buster(),
        }
        response = self.request("GET", f"{self.eportal_url}/login", params=params)
        result = interpret_jsonp(response.text)
        if result.result_code != "1":
            raise ProtocolError(
                result.raw_message or f"Login rejected (code {result.error_code or '?'})",
                code=result.error_code,
            )
        return LoginOutcome(True, result.raw_message or "Login succeeded", self.portal, code="1")

    def logout(self) -> LoginOutcome:
        self.logger.info("Logging out from %s", self.portal)
        outcome = self.guarded(self.logout_exchange)
        if outcome.success:
            self.logger.info("%s logout succeeded: %s", self.portal, outcome.message)
        else:
            self.logger.warning("%s logout failed: %s", self.portal, outcome.message)
        return outcome

    def logout_exchange(self) -> LoginOutcome:
        params = {
            "callback": "dr1002",
            "login_method": "1",
            "user_account": "drcom",
            "user_password": "123",
            "ac_logout": "1",
            "register_mode": "1",
            "wlan_user_ip": self.client_ip(),
            "wlan_user_ipv6": "",
            "wlan_vlan_id": "0",
            "wlan_user_mac": self.mac,
            "wlan_ac_ip": "",
            "wlan_ac_name": "",
            "jsVersion": EPORTAL_JS_VERSION,
            "v": cache_buster(),
            "lang": "zh",
        }
        response = self.request("GET", f"{self.eportal_url}/logout", params=params)
        result = interpret_jsonp(response.text)
        if result.result_code != "1":
            raise ProtocolError(result.raw_message or "Logout rejected", code=result.error_code)
        return LoginOutcome(True, result.raw_message or "Logout succeeded", self.portal, code="1")


class CampusWlgnAdapter(PortalAdapter):
    portal = CAMPUS_WIFI

    def __init__(
        self,
        session: requests.Session,
        login_url: str,
        timeout: float = 5,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(session, timeout, logger)
        self.login_url = login_url

    def exchange(self, credentials: Credentials) -> LoginOutcome:
        params = {
            "callback": "dr1003",
            "DDDDD": credentials.username,
            "upass": credentials.password,
            "0MKKey": "123456",
            "R1": "0",
            "R3": "0",
            "R6": "0",
            "para": "00",
            "v6ip": "",
            "v": cache_buster(),
        }
        response = self.request("GET", self.login_url, params=params)
        result = interpret_jsonp(response.text)
        if result.result_code != "1":
            raise ProtocolError(
                result.raw_message or "Login rejected by campus Wi-Fi gateway",
                code=result.error_code,
            )
        return LoginOutcome(True, result.raw_message or "Login succeeded", self.portal, code="1")


class Ipv6OnlyAdapter(PortalAdapter):
    portal = IPV6_ONLY

    def __init__(
        self,
        session: requests.Session,
        login_url: str,
        referer: str,
        success_marker: str,
        timeout: float = 5,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(session, timeout, logger)
        self.login_url = login_url
        self.referer = referer
        self.success_marker = success_marker

    def exchange(self, credentials: Credentials) -> LoginOutcome:
        form = {
            "DDDDD": credentials.username,
            "upass": credentials.password,
            "v46s": V46S_IPV6,
            "v6ip": "",
            "0MKKey": "",
        }
        response = self.post_form(self.login_url, form, self.referer)
        return marker_outcome(response.text, self.success_marker, self.portal)


class DualStackAdapter(PortalAdapter):
    """Two chained form posts: lgn6 hands out an IPv6 token, lgn consumes it."""

    portal = DUAL_STACK

    def __init__(
        self,
        session: requests.Session,
        ipv6_url: str,
        ipv6_referer: str,
        primary_url: str,
        primary_referer: str,
        success_marker: str,
        token_field: str = "v6ip",
        timeout: float = 5,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(session, timeout, logger)
        self.ipv6_url = ipv6_url
        self.ipv6_referer = ipv6_referer
        self.primary_url = primary_url
        self.primary_referer = primary_referer
        self.success_marker = success_marker
        self.token_field = token_field

    def fetch_token(self, credentials: Credentials) -> PortalResponse:
        form = {
            "DDDDD": credentials.username,
            "upass": credentials.password,
            "v46s": V46S_BOTH,
            "v6ip": "",
            "0MKKey": "",
        }
        response = self.post_form(self.ipv6_url, form, self.ipv6_referer)
        return PortalResponse(extracted_field=extract_html_field(response.text, self.token_field))

    def exchange(self, credentials: Credentials) -> LoginOutcome:
        token = self.fetch_token(credentials).extracted_field
        if not token:
            raise DecodeError("IPv6 address token missing from gateway response")
        self.logger.debug("Got IPv6 token %s", token)
        form = {
            "DDDDD": credentials.username,
            "upass": credentials.password,
            "v46s": V46S_BOTH,
            "v6ip": token,
            "0MKKey": "Login",
        }
        response = self.post_form(self.primary_url, form, self.primary_referer)
        return marker_outcome(response.text, self.success_marker, self.portal)


def marker_outcome(body: str, marker: str, portal: str) -> LoginOutcome:
    result = PortalResponse(success_marker_found=contains_success_marker(body, marker))
    if result.success_marker_found:
        return LoginOutcome(True, "Login succeeded", portal)
    hint = extract_title(body)
    message = f"Login failed: {hint}" if hint else "Login failed: no confirmation from gateway"
    return LoginOutcome(False, message, portal)
