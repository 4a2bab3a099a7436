"""Shared pytest fixtures for the HTTP-backed client tests."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from indx_search.domain.models import QueryConfiguration

BASE_URL = "https://indx.test/api/"


@pytest.fixture
def config() -> QueryConfiguration:
    return QueryConfiguration(base_url=BASE_URL, dataset="demo", metric_score_min=30)


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    def _make(score: int, text: str = "text", key: str = "doc", segment: int = 0) -> dict[str, Any]:
        return {
            "metricScore": score,
            "documentTextToBeIndexed": text,
            "documentKey": key,
            "segmentNumber": segment,
        }

    return _make
