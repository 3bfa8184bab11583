from __future__ import annotations

import asyncio
import base64
import json
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from rsspot_exporter.constants import DEFAULT_AUTH_BASE_URL, DEFAULT_CLIENT_ID, TOKEN_RENEWAL_SKEW_SECONDS
from rsspot_exporter.errors import ApiError, AuthenticationError, RequestError

if TYPE_CHECKING:
    from rsspot_exporter.http import SpotTransport

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def decode_jwt_expiry(token: str) -> datetime | None:
    """Decode JWT `exp` claim without verifying the signature.

    Example:
        >>> decode_jwt_expiry("eyJ...token") is None
        True
    """

    if not token:
        return None

    parts = token.split(".")
    if len(parts) != 3:
        return None

    payload = parts[1]
    padding = "=" * (-len(payload) % 4)
    try:
        decoded = base64.urlsafe_b64decode(payload + padding)
        claims = json.loads(decoded.decode("utf-8"))
    except (ValueError, UnicodeDecodeError, json.JSONDecodeError):
        return None

    if not isinstance(claims, dict):
        return None

    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        return None

    try:
        return datetime.fromtimestamp(float(exp), tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class Credentials:
    """Immutable inputs for the refresh-token exchange."""

    refresh_token: str
    auth_base_url: str = DEFAULT_AUTH_BASE_URL
    client_id: str = DEFAULT_CLIENT_ID

    def __repr__(self) -> str:
        return f"Credentials(auth_base_url={self.auth_base_url!r}, client_id={self.client_id!r})"

    @property
    def token_url(self) -> str:
        return f"{self.auth_base_url.rstrip('/')}/oauth/token"


@dataclass(slots=True)
class TokenState:
    access_token: str | None = None
    expires_at: datetime = datetime.min.replace(tzinfo=UTC)

    def is_valid(self, now: datetime, *, skew_seconds: int = TOKEN_RENEWAL_SKEW_SECONDS) -> bool:
        if not self.access_token:
            return False
        return self.expires_at - now > timedelta(seconds=skew_seconds)


def _expires_in_seconds(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        seconds = float(value)
    except (OverflowError, ValueError):
        return None
    return seconds if math.isfinite(seconds) else None


def _expiry_after(now: datetime, seconds: float | None) -> datetime | None:
    if seconds is None:
        return None
    try:
        return now + timedelta(seconds=seconds)
    except OverflowError:
        return None


class TokenAuthenticator:
    """Exchange a long-lived refresh token for a short-lived bearer token.

    The exchanged ``id_token`` (not the ``access_token``) is the bearer
    credential accepted by the Spot API. Tokens are cached and renewed
    ``skew_seconds`` before they expire; concurrent callers share one
    in-flight exchange.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        transport: SpotTransport,
        clock: Clock = utc_now,
        skew_seconds: int = TOKEN_RENEWAL_SKEW_SECONDS,
    ) -> None:
        self.credentials = credentials
        self._transport = transport
        self._clock = clock
        self._skew_seconds = skew_seconds
        self._state = TokenState()
        self._lock = asyncio.Lock()

    @property
    def expires_at(self) -> datetime | None:
        if self._state.access_token is None:
            return None
        return self._state.expires_at

    def has_valid_token(self) -> bool:
        return self._state.is_valid(self._clock(), skew_seconds=self._skew_seconds)

    def invalidate(self) -> None:
        self._state = TokenState()

    async def ensure_valid_token(self) -> str:
        """Return a usable id_token, exchanging the refresh token when needed."""

        async with self._lock:
            state = self._state
            if state.access_token and state.is_valid(self._clock(), skew_seconds=self._skew_seconds):
                return state.access_token
            return await self._renew()

    async def _renew(self) -> str:
        payload = {
            "grant_type": "refresh_token",
            "client_id": self.credentials.client_id,
            "refresh_token": self.credentials.refresh_token,
        }
        try:
            decoded = await self._transport.request_json(
                "POST",
                self.credentials.token_url,
                form_data=payload,
                content_type="application/x-www-form-urlencoded",
                authenticated=False,
            )
        except ApiError as exc:
            body = exc.body if isinstance(exc.body, str) or exc.body is None else json.dumps(exc.body)
            raise AuthenticationError(status_code=exc.status_code, body=body) from exc
        except RequestError as exc:
            raise AuthenticationError(status_code=None, body=str(exc)) from exc

        token = decoded.get("id_token")
        if not isinstance(token, str) or not token:
            raise AuthenticationError(status_code=None, body="authentication response missing id_token")

        now = self._clock()
        expires_in = _expires_in_seconds(decoded.get("expires_in"))
        # Without a usable lifetime the token serves only the current request.
        expires_at = _expiry_after(now, expires_in) or decode_jwt_expiry(token) or now

        self._state = TokenState(access_token=token, expires_at=expires_at)
        logger.info("refreshed Spot API token", extra={"expires_at": expires_at.isoformat()})
        return token
