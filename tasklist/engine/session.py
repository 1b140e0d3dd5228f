"""
TaskList Session Provider — Identity and short-lived access tokens from the hosted auth service.

Flow:
    1. sign_in(email, password)  → password grant → AuthSession (identity + refresh token)
    2. get_token(session)        → refresh grant → fresh access token, refresh token rotated
    3. sign_out(session)         → revoke the refresh token family

Access tokens are never cached: the transport layer calls get_token() before
every request, so each outbound call carries a currently valid credential.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from tasklist.engine.config import AppConfig
from tasklist.engine.errors import TaskListSessionError
from tasklist.engine.logging import log, log_auth_event
from tasklist.engine.models import AuthSession, Identity

logger = logging.getLogger("tasklist.engine.session")

TokenGetter = Callable[[], Awaitable[str]]


class AuthProvider:
    """
    Thin client for the auth service's token endpoint.

    Usage:
        provider = AuthProvider(config)
        session = await provider.sign_in("me@example.com", "secret")
        token = await provider.get_token(session)
    """

    def __init__(
        self,
        config: AppConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = config.backend.url
        self._anon_key = config.backend.anon_key
        self._token_path = config.auth.token_path
        self._logout_path = config.auth.logout_path
        self._timeout = config.backend.timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"apikey": self._anon_key},
            timeout=httpx.Timeout(self._timeout, connect=10.0),
            transport=self._transport,
        )

    async def _grant(self, grant_type: str, body: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            try:
                response = await client.post(
                    self._token_path,
                    params={"grant_type": grant_type},
                    json=body,
                )
            except httpx.HTTPError as e:
                raise TaskListSessionError(
                    f"Auth service unreachable: {e}",
                    operation=grant_type,
                ) from e

        if response.status_code != 200:
            raise TaskListSessionError(
                f"Auth service refused {grant_type} grant (HTTP {response.status_code})",
                operation=grant_type,
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise TaskListSessionError(
                "Auth service returned a non-JSON body",
                operation=grant_type,
                status_code=response.status_code,
            ) from e
        if not payload.get("access_token") or not payload.get("refresh_token"):
            raise TaskListSessionError(
                "Auth service response has no tokens",
                operation=grant_type,
                status_code=response.status_code,
            )
        return payload

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Exchange email/password for a session."""
        try:
            payload = await self._grant("password", {"email": email, "password": password})
        except TaskListSessionError as e:
            log(log_auth_event("sign_in", email=email, status_code=e.status_code, success=False))
            raise

        user = payload.get("user") or {}
        if not user.get("id"):
            raise TaskListSessionError("Auth service response has no user", operation="password")

        identity = Identity(user_id=str(user["id"]), email=user.get("email") or email)
        log(log_auth_event("sign_in", email=identity.email, user_id=identity.user_id))
        logger.info("Signed in %s", identity.email)
        return AuthSession(identity=identity, refresh_token=payload["refresh_token"])

    async def get_token(self, session: AuthSession) -> str:
        """
        Mint a fresh access token for the session.

        The refresh token rotates on every call; the new one is written back
        onto ``session``.
        """
        try:
            payload = await self._grant(
                "refresh_token", {"refresh_token": session.refresh_token}
            )
        except TaskListSessionError as e:
            log(log_auth_event(
                "token_refresh",
                user_id=session.identity.user_id,
                status_code=e.status_code,
                success=False,
            ))
            raise
        session.refresh_token = payload["refresh_token"]
        return payload["access_token"]

    async def sign_out(self, session: AuthSession) -> None:
        """Revoke the session. Failures are logged; the local session is dropped regardless."""
        try:
            token = await self.get_token(session)
            async with self._client() as client:
                response = await client.post(
                    self._logout_path,
                    headers={"Authorization": f"Bearer {token}"},
                )
            ok = response.status_code < 400
        except (TaskListSessionError, httpx.HTTPError) as e:
            logger.warning("Sign-out for %s failed: %s", session.identity.email, e)
            ok = False
        log(log_auth_event("sign_out", user_id=session.identity.user_id, success=ok))


def token_getter(provider: AuthProvider, session: AuthSession) -> TokenGetter:
    """Zero-argument coroutine factory used by BearerTokenAuth."""

    async def _get() -> str:
        return await provider.get_token(session)

    return _get
