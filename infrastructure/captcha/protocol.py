"""CaptchaProvider protocol: services depend on this, not the concrete implementation."""

import asyncio
from typing import Optional, Protocol

from schemas.models.siteverify import VerificationResult


class CaptchaProvider(Protocol):
    async def site_verify(
        self,
        token: str,
        remote_ip: str = "",
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> VerificationResult: ...
