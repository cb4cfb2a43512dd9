from typing import Optional


class PortalAuthError(Exception):
    """Base class for every error raised by bjut_auth."""


class TransportError(PortalAuthError):
    pass


class DecodeError(PortalAuthError):
    pass


class ProtocolError(PortalAuthError):
    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code or ""


class PolicyError(PortalAuthError):
    pass


class ProbeError(PortalAuthError):
    pass


class QueryError(PortalAuthError):
    pass
