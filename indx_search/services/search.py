"""Search query client for the Indx REST API."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from indx_search.domain.models import (
    NO_TRUNCATION,
    QueryConfiguration,
    SearchRequest,
    SearchResponse,
    SearchResultView,
)
from indx_search.logging import logger
from indx_search.services.exceptions import (
    SearchError,
    SearchMalformedResponse,
    SearchTransportFailure,
)
from indx_search.utils.retry import retry_async

_DATASETS = TypeAdapter(list[str | int])


def build_view(
    response: SearchResponse,
    query_text: str,
    config: QueryConfiguration,
    sequence: int = 0,
) -> SearchResultView:
    """Apply the score threshold and truncation boundary to a response.

    Queries of one character or less skip the threshold so a near-empty
    query is not pruned away.
    """

    records = response.search_records
    if len(query_text) > 1:
        records = [r for r in records if r.metric_score >= config.metric_score_min]

    truncation_index = NO_TRUNCATION
    if config.do_truncate and response.coverage_bottom_index is not None:
        truncation_index = max(response.coverage_bottom_index, NO_TRUNCATION)

    return SearchResultView(
        query_text=query_text,
        records=tuple(records),
        truncation_index=truncation_index,
        sequence=sequence,
    )


class SearchClient:
    """Builds search requests, sends them and turns responses into views.

    ``search`` never raises: failures are logged and yield an empty view
    carrying the error, so an input field driving it stays usable.
    """

    def __init__(self, http_client: httpx.AsyncClient, *, datasets_retry_attempts: int = 3) -> None:
        self._client = http_client
        self._datasets_retry_attempts = datasets_retry_attempts

    def build_request(
        self,
        query_text: str,
        config: QueryConfiguration,
        token: str = "",
        sequence: int = 0,
    ) -> SearchRequest:
        payload = config.to_payload(query_text)
        return SearchRequest(
            sequence=sequence,
            query_text=query_text,
            url=config.search_url(),
            headers={
                "Accept": "application/json",
                "Authorization": token,
                "Content-Type": "application/json",
            },
            body=payload.model_dump(mode="json", by_alias=True),
            view=config.view_options(),
        )

    async def search(
        self,
        query_text: str,
        config: QueryConfiguration,
        token: str = "",
        sequence: int = 0,
    ) -> SearchResultView:
        request = self.build_request(query_text, config, token, sequence)
        try:
            response = await self._send(request, timeout=config.timeout_ms / 1000)
        except SearchError as exc:
            logger.warning(
                "search_failed",
                error_type=exc.__class__.__name__,
                error=str(exc),
                sequence=sequence,
                dataset=config.dataset,
            )
            return SearchResultView.empty(query_text, sequence=sequence, error=exc)

        view = build_view(response, query_text, config, sequence)
        logger.debug(
            "search_completed",
            sequence=sequence,
            dataset=config.dataset,
            returned=len(response.search_records),
            shown=len(view),
            truncation_index=view.truncation_index,
        )
        return view

    async def _send(self, request: SearchRequest, *, timeout: float) -> SearchResponse:
        try:
            response = await asyncio.wait_for(
                self._client.post(
                    request.url,
                    json=request.body,
                    headers=request.headers,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
            response.raise_for_status()
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise SearchTransportFailure(f"Search timed out after {timeout:.3f}s") from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise SearchTransportFailure(
                f"Search failed ({status_code}): {exc.response.text[:200]}",
                status_code=status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise SearchTransportFailure(f"Search request failed: {exc}") from exc

        try:
            data: Any = response.json()
        except ValueError as exc:
            raise SearchMalformedResponse("Search response is not valid JSON.") from exc
        if not isinstance(data, dict):
            raise SearchMalformedResponse("Search response is not a JSON object.")
        try:
            return SearchResponse.model_validate(data)
        except ValidationError as exc:
            raise SearchMalformedResponse(
                f"Search response does not match schema: {exc.error_count()} error(s)"
            ) from exc

    async def list_datasets(self, config: QueryConfiguration, token: str = "") -> list[str]:
        """Return dataset identifiers visible to ``token``; empty on any failure."""

        if config.protocol_version == "3.2":
            logger.info("datasets_unsupported", protocol_version=config.protocol_version)
            return []

        headers = {"Accept": "application/json", "Authorization": token}

        async def _request():
            response = await self._client.get(
                config.datasets_url(),
                headers=headers,
                timeout=config.timeout_ms / 1000,
            )
            if response.status_code != 401:
                response.raise_for_status()
            return response

        try:
            response = await retry_async(
                _request,
                max_attempts=self._datasets_retry_attempts,
                base_delay=0.5,
                retry_on=(httpx.RequestError,),
                logger=logger,
                operation_name="list_datasets",
            )
        except (httpx.RequestError, httpx.HTTPStatusError) as exc:
            logger.warning("datasets_request_failed", error=str(exc))
            return []

        if response.status_code == 401:
            logger.info("datasets_unauthorized")
            return []
        try:
            return [str(item) for item in _DATASETS.validate_python(response.json())]
        except (ValueError, ValidationError) as exc:
            logger.warning("datasets_response_malformed", error=str(exc))
            return []


__all__ = ["SearchClient", "build_view"]
