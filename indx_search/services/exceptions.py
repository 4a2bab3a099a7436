"""Client error taxonomy."""

from __future__ import annotations


class IndxClientError(Exception):
    pass


class AuthError(IndxClientError):
    pass


class AuthUnauthorized(AuthError):
    pass


class AuthBadRequest(AuthError):
    pass


class AuthTransportFailure(AuthError):
    """Network failure, unexpected status or unusable body from the login endpoint."""


class SearchError(IndxClientError):
    pass


class SearchTransportFailure(SearchError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SearchMalformedResponse(SearchError):
    """Response body did not match the expected search schema."""


__all__ = [
    "IndxClientError",
    "AuthError",
    "AuthUnauthorized",
    "AuthBadRequest",
    "AuthTransportFailure",
    "SearchError",
    "SearchTransportFailure",
    "SearchMalformedResponse",
]
