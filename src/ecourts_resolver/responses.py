"""Result types returned by providers and the resolver.

A call ends in exactly one of three states:

- :class:`Success` carries normalized data.
- :class:`ActionRequired` means a human has to complete a CAPTCHA or a
  manual portal step before retrying. It is not a failure.
- :class:`Failure` carries an :class:`ErrorCode` from a small closed set so
  callers can branch on it exhaustively.
"""

import dataclasses
import enum
from typing import Any, Union


class ErrorCode(str, enum.Enum):
    INVALID_CNR = "INVALID_CNR"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_CONFIG = "MISSING_CONFIG"
    CAPTCHA_REQUIRED = "CAPTCHA_REQUIRED"
    NO_DATA = "NO_DATA"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    API_UNAVAILABLE = "API_UNAVAILABLE"
    ALL_PROVIDERS_UNAVAILABLE = "ALL_PROVIDERS_UNAVAILABLE"
    NOT_SUPPORTED = "NOT_SUPPORTED"

    @property
    def category(self) -> str:
        return _CATEGORIES[self]

    @property
    def retryable(self) -> bool:
        """Whether retrying later without changing input or config may help."""
        return self.category == "temporary"


_CATEGORIES = {
    ErrorCode.INVALID_CNR: "invalid_input",
    ErrorCode.INVALID_INPUT: "invalid_input",
    ErrorCode.MISSING_CONFIG: "configuration",
    ErrorCode.CAPTCHA_REQUIRED: "action_required",
    ErrorCode.NO_DATA: "temporary",
    ErrorCode.NOT_FOUND: "temporary",
    ErrorCode.UPSTREAM_UNAVAILABLE: "temporary",
    ErrorCode.API_UNAVAILABLE: "temporary",
    ErrorCode.ALL_PROVIDERS_UNAVAILABLE: "terminal",
    ErrorCode.NOT_SUPPORTED: "configuration",
}


def _serialize(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, list):
        return [_serialize(item) for item in data]
    if isinstance(data, bytes):
        return {"size": len(data)}
    return data


@dataclasses.dataclass
class Success:
    data: Any
    provider: str
    response_time: int = 0
    message: str | None = None

    success = True
    requires_captcha = False
    requires_manual = False

    def to_dict(self) -> dict:
        out = {
            "success": True,
            "data": _serialize(self.data),
            "responseTime": self.response_time,
            "provider": self.provider,
        }
        if self.message:
            out["message"] = self.message
        return out


@dataclasses.dataclass
class ActionRequired:
    captcha_url: str
    session_id: str
    provider: str
    message: str = "Please complete CAPTCHA verification"
    response_time: int = 0
    portal_url: str | None = None
    requires_manual: bool = False

    success = False
    requires_captcha = True
    error = ErrorCode.CAPTCHA_REQUIRED

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.error.value,
            "message": self.message,
            "requiresCaptcha": True,
            "requiresManual": self.requires_manual,
            "actionRequired": {
                "captchaUrl": self.captcha_url,
                "sessionId": self.session_id,
                "portalUrl": self.portal_url,
            },
            "responseTime": self.response_time,
            "provider": self.provider,
        }


@dataclasses.dataclass
class Failure:
    error: ErrorCode
    message: str
    provider: str
    response_time: int = 0
    requires_manual: bool = False
    requires_captcha: bool = False

    success = False

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.error.value,
            "message": self.message,
            "requiresCaptcha": self.requires_captcha,
            "requiresManual": self.requires_manual,
            "responseTime": self.response_time,
            "provider": self.provider,
        }


ProviderResult = Union[Success, ActionRequired, Failure]


def with_timing(result: ProviderResult, response_time: int) -> ProviderResult:
    """Return *result* with ``response_time`` set on a copy."""
    return dataclasses.replace(result, response_time=response_time)
