"""
siteverify reply model and the two-variant verification result.

SiteVerifyReply    the JSON object returned by the siteverify endpoint
TransportFailure   the exchange itself failed; carries only the error
VerificationResult = SiteVerifyReply | TransportFailure

A missing ``success`` decodes as ``False``, so the only way to obtain an
accepting reply is to decode one that says so (or state it outright).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from errors import TransportError


class SiteVerifyReply(BaseModel):
    """Decoded siteverify response.

    ``success`` is the service's own signal that the token was valid; it does
    not mean the user should be let through. Run the reply through the
    policy evaluator for that.

    Error codes reported by the service:

        missing-input-secret     The secret parameter is missing.
        invalid-input-secret     The secret parameter is invalid or malformed.
        missing-input-response   The response parameter is missing.
        invalid-input-response   The response parameter is invalid or malformed.
        bad-request              The request is invalid or malformed.
        timeout-or-duplicate     The response is no longer valid: either is
                                 too old or has been used previously.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    success: bool = False
    score: float = 0.0
    action: str = ""
    challenge_ts: Optional[datetime] = None
    hostname: str = ""
    error_codes: list[str] = Field(default_factory=list, alias="error-codes")

    @field_validator("error_codes", mode="before")
    @classmethod
    def _null_error_codes(cls, v):
        return [] if v is None else v

    @classmethod
    def from_json(cls, body: Union[str, bytes]) -> "SiteVerifyReply":
        return cls.model_validate_json(body)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


@dataclass(frozen=True)
class TransportFailure:
    """The request never produced a decodable reply."""

    error: TransportError


VerificationResult = Union[SiteVerifyReply, TransportFailure]
