"""reCAPTCHA implementation of CaptchaProvider.

One POST per call, no retries. Every failure of the exchange itself comes
back as a TransportFailure value instead of an exception, so callers can
hand the result straight to the policy evaluator.

If the application sits behind a load balancer or reverse proxy, pass the
real client address as ``remote_ip`` (X-Real-IP or the first X-Forwarded-For
entry), not the peer address of the proxy.
"""

import asyncio
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from errors import (
    CanceledError,
    DeadlineExceededError,
    DecodeError,
    HTTPStatusError,
    ReadBodyError,
    TransportError,
)
from infrastructure.http_client import HttpClient
from schemas.models.siteverify import (
    SiteVerifyReply,
    TransportFailure,
    VerificationResult,
)
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def encode_form(secret: str, token: str, remote_ip: str = "") -> str:
    """Form-encode the request body with fields in alphabetical order."""
    fields = {"secret": secret, "response": token}
    if remote_ip:
        fields["remoteip"] = remote_ip
    return urlencode(sorted(fields.items()))


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _describe_validation(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


class RecaptchaProvider:
    def __init__(
        self,
        secret: str,
        http_client: HttpClient,
        verify_url: str = SITEVERIFY_URL,
    ) -> None:
        self._secret = secret
        self._http = http_client
        self._url = verify_url

    async def site_verify(
        self,
        token: str,
        remote_ip: str = "",
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> VerificationResult:
        """Exchange *token* for a siteverify reply.

        ``timeout`` is a deadline in seconds for the whole exchange; setting
        ``cancel`` aborts it. Either one produces a TransportFailure
        (DeadlineExceededError or CanceledError). Cancelling the calling task
        itself is not swallowed.
        """
        if cancel is not None and cancel.is_set():
            return self._fail(CanceledError(f"POST {self._url}: canceled"), remote_ip)

        exchange = asyncio.ensure_future(self._exchange(token, remote_ip))
        waiters = {exchange}
        canceled = None
        if cancel is not None:
            canceled = asyncio.ensure_future(cancel.wait())
            waiters.add(canceled)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            pending = [w for w in waiters if not w.done()]
            for w in pending:
                w.cancel()
            # let the aborted exchange close its response before returning
            await asyncio.gather(*pending, return_exceptions=True)

        if exchange in done:
            return exchange.result()
        if canceled is not None and canceled in done:
            error: TransportError = CanceledError(f"POST {self._url}: canceled")
        else:
            error = DeadlineExceededError(f"POST {self._url}: deadline exceeded")
        return self._fail(error, remote_ip)

    async def _exchange(self, token: str, remote_ip: str) -> VerificationResult:
        body = encode_form(self._secret, token, remote_ip)
        try:
            async with self._http.stream(
                "POST",
                self._url,
                content=body,
                headers={"Content-Type": _FORM_CONTENT_TYPE},
            ) as response:
                try:
                    raw = await response.aread()
                except httpx.TimeoutException:
                    raise
                except httpx.HTTPError as e:
                    return self._fail(ReadBodyError(f"read body: {_describe(e)}"), remote_ip)
        except httpx.TimeoutException:
            return self._fail(
                DeadlineExceededError(f"POST {self._url}: deadline exceeded"), remote_ip
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._fail(TransportError(f"POST {self._url}: {_describe(e)}"), remote_ip)

        text = raw.decode("utf-8", errors="replace")
        if not response.is_success:
            return self._fail(
                HTTPStatusError(response.status_code, response.reason_phrase, text),
                remote_ip,
            )

        try:
            reply = SiteVerifyReply.from_json(raw)
        except ValidationError as e:
            return self._fail(DecodeError(_describe_validation(e), text), remote_ip)

        if reply.error_codes:
            log.warning(
                "recaptcha_error_codes",
                error_codes=reply.error_codes,
                ip_hash=hash_ip(remote_ip or None),
            )
        return reply

    def _fail(self, error: TransportError, remote_ip: str) -> TransportFailure:
        log.error(
            "recaptcha_request_failed",
            error=error.message,
            error_type=type(error).__name__,
            ip_hash=hash_ip(remote_ip or None),
        )
        return TransportFailure(error)
