"""Error taxonomy shared by the vendor client, retry policy and search service.

Vendor failures are classified once, at the client boundary, into an
``ErrorKind``. Everything downstream dispatches on that kind instead of
poking at status attributes or message text.
"""

from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    VALIDATION = "validation"


class SkailinkError(Exception):
    """Base class for all application errors."""


class ValidationError(SkailinkError):
    """Malformed or missing request fields. Never retried."""

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: List[str]):
        self.errors = list(errors) or ["Invalid request"]
        super().__init__(self.errors[0])


class VendorError(SkailinkError):
    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.PERMANENT,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.code = code
        self.detail = detail

    @property
    def is_transient(self) -> bool:
        return self.kind == ErrorKind.TRANSIENT

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "status_code": self.status_code,
            "code": self.code,
            "message": str(self),
            "detail": self.detail,
        }


class VendorTransientError(VendorError):
    def __init__(self, message: str, status_code: Optional[int] = None,
                 code: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message, ErrorKind.TRANSIENT, status_code, code, detail)


class VendorPermanentError(VendorError):
    def __init__(self, message: str, status_code: Optional[int] = None,
                 code: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message, ErrorKind.PERMANENT, status_code, code, detail)


class NormalizationError(SkailinkError):
    """A single vendor offer could not be turned into a FlightOffer."""

    def __init__(self, message: str, offer_id: Optional[str] = None):
        super().__init__(message)
        self.offer_id = offer_id


class HistoryWriteError(SkailinkError):
    pass


class NotFoundError(SkailinkError):
    pass
