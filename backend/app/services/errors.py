"""Service-layer exceptions, mapped to HTTP responses in app.main"""
from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    """Base class for errors raised by services"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed or conflicting input; nothing was written"""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class DuplicateSymbolError(ValidationError):
    status_code = 409

    def __init__(self, symbol: str):
        super().__init__(
            f"Coin with symbol {symbol} already exists",
            errors=[{"loc": ["symbol"], "msg": "already exists"}],
        )
        self.symbol = symbol


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, entity: str, identifier: Any = None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


class UnauthorizedError(ServiceError):
    """Caller tried to mutate a resource owned by someone else"""

    status_code = 403

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class RegistryUnavailableError(ServiceError):
    """A call to the Metal registry failed (transport error or non-2xx status)"""

    status_code = 502

    def __init__(self, operation: str, upstream_status: Optional[int] = None, body: Optional[str] = None):
        detail = f"Metal API call failed: {operation}"
        if upstream_status is not None:
            detail += f" (status {upstream_status})"
        super().__init__(detail)
        self.operation = operation
        self.upstream_status = upstream_status
        self.body = body

    @property
    def http_status(self) -> int:
        # Pass client errors through; everything else is a bad gateway
        if self.upstream_status is not None and 400 <= self.upstream_status < 500:
            return self.upstream_status
        return self.status_code
