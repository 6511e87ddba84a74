"""
reCAPTCHA error hierarchy.

CaptchaError is the base for all typed errors. TransportError and its
subclasses describe a failed exchange with the siteverify service; the
remaining classes are the local policy decisions made on a decoded reply.

Errors are plain exceptions: callers may raise them and wrap them with
``raise ... from err``. find_error() walks that chain, so a wrapped
BelowMinimumScoreError is still recognised by is_below_min_score().
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Type, TypeVar

E = TypeVar("E", bound=BaseException)


class CaptchaError(Exception):
    """Base reCAPTCHA error. All typed errors inherit from this."""

    error_code: str = "captcha_error"

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


# ── Transport ─────────────────────────────────────────────────────────────────


class TransportError(CaptchaError):
    error_code = "transport_error"


class HTTPStatusError(TransportError):
    error_code = "http_status_error"

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        super().__init__(
            f"http: {status_code} {reason}, body: '{body}'",
            details={"status_code": status_code},
        )
        self.status_code = status_code
        self.body = body


class ReadBodyError(TransportError):
    error_code = "read_body_error"


class DecodeError(TransportError):
    error_code = "decode_error"

    def __init__(self, cause: str, body: str) -> None:
        super().__init__(f"error decoding json: {cause}, body: '{body}'")
        self.body = body


class DeadlineExceededError(TransportError):
    error_code = "deadline_exceeded"


class CanceledError(TransportError):
    error_code = "canceled"


# ── Policy ────────────────────────────────────────────────────────────────────


class RemoteRejectedError(CaptchaError):
    error_code = "remote_rejected"

    def __init__(self, error_codes: Sequence[str]) -> None:
        super().__init__(",".join(error_codes), details={"error_codes": list(error_codes)})
        self.error_codes = list(error_codes)


class NotSuccessfulError(CaptchaError):
    error_code = "not_successful"

    def __init__(self) -> None:
        super().__init__("success = false")


class HostnameNotAllowedError(CaptchaError):
    error_code = "hostname_not_allowed"

    def __init__(self, hostname: str, allowed: Sequence[str]) -> None:
        super().__init__(f"hostname '{hostname}' not in '{','.join(allowed)}'")
        self.hostname = hostname
        self.allowed = list(allowed)


class ActionMismatchError(CaptchaError):
    error_code = "action_mismatch"

    def __init__(self, action: str, expected: str) -> None:
        super().__init__(f"action '{action}' does not equal expected '{expected}'")
        self.action = action
        self.expected = expected


class BelowMinimumScoreError(CaptchaError):
    """Score under the configured floor.

    The one policy failure callers are expected to branch on, e.g. to show a
    secondary challenge instead of rejecting outright.
    """

    error_code = "below_min_score"

    def __init__(self, score: float, min_score: float) -> None:
        super().__init__(
            f"score '{score!r}' less than '{min_score!r}'",
            details={"score": score, "min_score": min_score},
        )
        self.score = score
        self.min_score = min_score


# ── Classification ────────────────────────────────────────────────────────────


def find_error(err: Optional[BaseException], kind: Type[E]) -> Optional[E]:
    """Return the first exception of type *kind* in the wrap chain of *err*.

    Follows ``__cause__`` and, unless suppressed with ``from None``,
    ``__context__``. Returns ``None`` when *err* is ``None`` or nothing in the
    chain matches.
    """
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, kind):
            return err
        seen.add(id(err))
        if err.__cause__ is not None:
            err = err.__cause__
        elif not err.__suppress_context__:
            err = err.__context__
        else:
            err = None
    return None


def is_below_min_score(err: Optional[BaseException]) -> bool:
    """Report whether *err*, or anything it wraps, is a BelowMinimumScoreError."""
    return find_error(err, BelowMinimumScoreError) is not None
