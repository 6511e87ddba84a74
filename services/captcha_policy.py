"""
Local policy checks applied to a siteverify result.

evaluate() is pure: no I/O, no logging, same answer for the same inputs.
Checks run in a fixed order and the first failure is returned:

    transport failure > error codes > success=false > hostname > action > score

Failures are returned, not raised. None means the token is accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from errors import (
    ActionMismatchError,
    BelowMinimumScoreError,
    CaptchaError,
    HostnameNotAllowedError,
    NotSuccessfulError,
    RemoteRejectedError,
)
from schemas.models.siteverify import TransportFailure, VerificationResult


def evaluate(
    result: VerificationResult,
    expected_action: str,
    min_score: float,
    allowed_hostnames: Sequence[str] = (),
) -> Optional[CaptchaError]:
    """Decide whether to trust *result*.

    An empty *allowed_hostnames* skips the hostname check; leave it empty
    only if the site key already enforces origin verification. A bare string
    is one hostname, not a sequence of characters.
    """
    if isinstance(allowed_hostnames, str):
        allowed_hostnames = (allowed_hostnames,)
    allowed_hostnames = tuple(allowed_hostnames or ())

    if isinstance(result, TransportFailure):
        return result.error

    if result.error_codes:
        return RemoteRejectedError(result.error_codes)

    if not result.success:
        return NotSuccessfulError()

    if allowed_hostnames and result.hostname not in allowed_hostnames:
        return HostnameNotAllowedError(result.hostname, allowed_hostnames)

    if result.action != expected_action:
        return ActionMismatchError(result.action, expected_action)

    if result.score < min_score:
        return BelowMinimumScoreError(result.score, min_score)

    return None


@dataclass(frozen=True)
class CaptchaPolicy:
    expected_action: str
    min_score: float
    allowed_hostnames: Sequence[str] = ()

    def evaluate(self, result: VerificationResult) -> Optional[CaptchaError]:
        return evaluate(
            result, self.expected_action, self.min_score, self.allowed_hostnames
        )
