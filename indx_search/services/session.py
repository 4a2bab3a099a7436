"""Authentication lifecycle for the search service."""

from __future__ import annotations

import dataclasses

import httpx
from pydantic import SecretStr

from indx_search.domain.models import DEFAULT_BASE_URL, AuthStatus, Session
from indx_search.logging import logger
from indx_search.services.exceptions import (
    AuthBadRequest,
    AuthError,
    AuthTransportFailure,
    AuthUnauthorized,
)

BEARER_PREFIX = "Bearer "

_FAILURE_STATUS: dict[type[AuthError], AuthStatus] = {
    AuthUnauthorized: AuthStatus.UNAUTHORIZED,
    AuthBadRequest: AuthStatus.BAD_REQUEST,
    AuthTransportFailure: AuthStatus.FAILED,
}


class SessionManager:
    """Holds exactly one session and exchanges credentials for a bearer token.

    Every ``login``/``logout`` starts a new generation. A login whose
    response arrives after a newer generation started is dropped, so the
    last call always wins.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._client = http_client
        self._base_url = base_url
        self._timeout = timeout
        self._session = Session()
        self._generation = 0

    @property
    def session(self) -> Session:
        return self._session

    @property
    def token(self) -> str:
        return self._session.token

    @property
    def status(self) -> AuthStatus:
        return self._session.status

    def set_base_url(self, base_url: str) -> None:
        self._base_url = base_url

    async def login(self, username: str, password: str | SecretStr) -> Session:
        if not isinstance(password, SecretStr):
            password = SecretStr(password)
        self._generation += 1
        generation = self._generation
        previous_token = self._session.token
        self._session = Session(
            username=username,
            password=password,
            status=AuthStatus.AUTHORIZING,
        )
        logger.info("login_started", username=username)

        try:
            raw_token = await self._request_token(username, password, previous_token)
        except AuthError as exc:
            if generation != self._generation:
                logger.info("login_superseded", username=username)
                return self._session
            status = _FAILURE_STATUS[type(exc)]
            logger.warning("login_failed", username=username, status=status.value, error=str(exc))
            self._session = dataclasses.replace(
                self._session, status=status, token="", error=str(exc)
            )
            return self._session

        if generation != self._generation:
            logger.info("login_superseded", username=username)
            return self._session

        self._session = dataclasses.replace(
            self._session,
            status=AuthStatus.AUTHORIZED,
            token=f"{BEARER_PREFIX}{raw_token}",
            error=None,
        )
        logger.info("login_succeeded", username=username)
        return self._session

    def logout(self) -> Session:
        self._generation += 1
        self._session = Session()
        logger.info("logged_out")
        return self._session

    def invalidate(self, reason: str = "unauthorized", token: str | None = None) -> Session:
        """Forget the token after the server rejected it.

        When ``token`` is given, only that token is forgotten: a rejection of
        a token that a later login already replaced leaves the session alone.
        """

        if not self._session.token:
            return self._session
        if token is not None and token != self._session.token:
            logger.info("stale_token_rejection_ignored", username=self._session.username)
            return self._session
        self._generation += 1
        self._session = dataclasses.replace(
            self._session, status=AuthStatus.UNAUTHORIZED, token="", error=reason
        )
        logger.warning("session_invalidated", username=self._session.username, reason=reason)
        return self._session

    async def _request_token(self, username: str, password: SecretStr, current_token: str) -> str:
        headers = {
            "Accept": "text/plain",
            "Authorization": current_token,
        }
        params = {
            "userEmail": username,
            "userPassWord": password.get_secret_value(),
        }
        try:
            response = await self._client.post(
                f"{self._base_url}Login",
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
        except httpx.RequestError as exc:
            raise AuthTransportFailure(f"Login request failed: {exc.__class__.__name__}") from exc

        if response.status_code == 401:
            raise AuthUnauthorized("Unauthorized. Check credentials")
        if response.status_code == 400:
            raise AuthBadRequest("Bad request")
        if not response.is_success:
            raise AuthTransportFailure(f"Login failed with status {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise AuthTransportFailure("Login response is not valid JSON.") from exc
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthTransportFailure("Login response carries no token.")
        return token


__all__ = ["BEARER_PREFIX", "SessionManager"]
