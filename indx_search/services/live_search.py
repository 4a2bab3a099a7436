"""Search-as-you-type coordination."""

from __future__ import annotations

import asyncio

from indx_search.domain.models import QueryConfiguration, SearchResultView
from indx_search.logging import logger
from indx_search.services.exceptions import SearchTransportFailure
from indx_search.services.search import SearchClient
from indx_search.services.session import SessionManager


class LiveSearch:
    """Issues one search per input change and keeps the visible view current.

    Requests are numbered in issue order. A response is accepted only while
    its number is still the latest issued, so a slow answer for an earlier
    keystroke never replaces the view for a later one.
    """

    def __init__(
        self,
        client: SearchClient,
        sessions: SessionManager,
        config: QueryConfiguration,
    ) -> None:
        self._client = client
        self._sessions = sessions
        self._config = config
        self._issued = 0
        self._view = SearchResultView.empty()

    @property
    def config(self) -> QueryConfiguration:
        return self._config

    @property
    def view(self) -> SearchResultView:
        return self._view

    @property
    def latest_issued(self) -> int:
        return self._issued

    def update_config(self, config: QueryConfiguration) -> None:
        self._config = config

    async def on_input(self, text: str) -> SearchResultView:
        return await self._run(text, *self._issue())

    def submit(self, text: str) -> asyncio.Task[SearchResultView]:
        """Schedule a search for ``text`` without waiting for it.

        The request inputs are captured here, so issue order is call order.
        """

        return asyncio.create_task(self._run(text, *self._issue()))

    def _issue(self) -> tuple[int, QueryConfiguration, str]:
        self._issued += 1
        return self._issued, self._config, self._sessions.token

    async def _run(
        self, text: str, sequence: int, config: QueryConfiguration, token: str
    ) -> SearchResultView:
        view = await self._client.search(text, config, token, sequence=sequence)

        if sequence != self._issued:
            logger.debug("stale_search_response_discarded", sequence=sequence, latest=self._issued)
            return self._view

        failure = view.error
        if isinstance(failure, SearchTransportFailure) and failure.status_code == 401:
            self._sessions.invalidate("search rejected the token", token=token)
        self._view = view
        return self._view


__all__ = ["LiveSearch"]
