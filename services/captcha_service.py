"""
CaptchaService: verifies a token and applies the site's policy in one call.

Composes a CaptchaProvider (remote exchange) with a CaptchaPolicy (local
checks) and logs the decision. Callers that need the raw reply can use the
provider and services.captcha_policy.evaluate() directly.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from config import RecaptchaSettings
from errors import CaptchaError, is_below_min_score
from infrastructure.captcha.protocol import CaptchaProvider
from infrastructure.captcha.recaptcha import RecaptchaProvider
from infrastructure.http_client import HttpClient
from services.captcha_policy import CaptchaPolicy
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class CaptchaService:
    def __init__(
        self,
        provider: CaptchaProvider,
        policy: CaptchaPolicy,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._policy = policy
        self._timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: RecaptchaSettings, http_client: HttpClient
    ) -> "CaptchaService":
        provider = RecaptchaProvider(
            secret=settings.recaptcha_secret,
            http_client=http_client,
            verify_url=settings.recaptcha_verify_url,
        )
        policy = CaptchaPolicy(
            expected_action=settings.recaptcha_expected_action,
            min_score=settings.recaptcha_min_score,
            allowed_hostnames=tuple(settings.recaptcha_hostnames),
        )
        return cls(provider, policy, timeout=settings.recaptcha_timeout_seconds)

    @property
    def policy(self) -> CaptchaPolicy:
        return self._policy

    async def check(
        self,
        token: str,
        remote_ip: str = "",
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[CaptchaError]:
        """Return None if the token is accepted, otherwise the first failure.

        ``timeout`` overrides the configured deadline for this call.
        """
        result = await self._provider.site_verify(
            token,
            remote_ip,
            timeout=self._timeout if timeout is None else timeout,
            cancel=cancel,
        )
        error = self._policy.evaluate(result)

        if error is None:
            log.info(
                "captcha_accepted",
                action=self._policy.expected_action,
                ip_hash=hash_ip(remote_ip or None),
            )
        elif is_below_min_score(error):
            log.info(
                "captcha_low_score",
                score=error.details["score"],
                min_score=error.details["min_score"],
                ip_hash=hash_ip(remote_ip or None),
            )
        else:
            log.warning(
                "captcha_rejected",
                error_code=error.error_code,
                error=error.message,
                ip_hash=hash_ip(remote_ip or None),
            )
        return error
