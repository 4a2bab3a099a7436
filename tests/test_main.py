"""Tests for logging configuration and the terminal demo loop."""

from __future__ import annotations

import json

import httpx
import pytest
import structlog

from indx_search import main as main_module
from indx_search.config import ClientSettings
from indx_search.logging import configure_logging


def test_configure_logging_outputs_json(capsys):
    configure_logging()
    logger = structlog.get_logger()
    logger.info("unit-test", foo="bar")
    out = capsys.readouterr().out
    structlog.reset_defaults()
    assert "unit-test" in out
    assert "foo" in out


async def _scripted(*lines: str):
    for line in lines:
        yield line


def _settings(**overrides) -> ClientSettings:
    return ClientSettings(
        _env_file=None,
        api_url="https://indx.test/api/",
        dataset="books",
        dataset_description="Books",
        **overrides,
    )


class FakeServer:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/Login"):
            return httpx.Response(200, json={"token": "tok"})
        if path.endswith("/Search/datasets"):
            return httpx.Response(200, json=["books", "films"])
        query = json.loads(request.content.decode("utf-8"))["queryText"]
        return httpx.Response(
            200,
            json={
                "searchRecords": [
                    {
                        "metricScore": 180,
                        "documentTextToBeIndexed": f"{query} result",
                        "documentKey": "1",
                        "segmentNumber": 0,
                    }
                ]
            },
        )


@pytest.mark.asyncio
async def test_run_without_credentials_searches_and_switches_dataset():
    server = FakeServer()
    output: list[str] = []
    async with httpx.AsyncClient(transport=httpx.MockTransport(server)) as http_client:
        await main_module.run(
            _settings(),
            http_client,
            _scripted("whale", ":dataset films", "shark", ":quit", "never sent"),
            write=output.append,
        )

    assert output[0] == "Not logged in"
    assert any("whale result" in chunk for chunk in output)
    assert "Dataset: films" in output
    search_paths = [r.url.path for r in server.requests]
    assert search_paths == ["/api/Search/books", "/api/Search/films"]


@pytest.mark.asyncio
async def test_run_logs_in_and_lists_datasets():
    server = FakeServer()
    output: list[str] = []
    async with httpx.AsyncClient(transport=httpx.MockTransport(server)) as http_client:
        await main_module.run(
            _settings(username="me@example.com", password="pw"),
            http_client,
            _scripted(":type cod", ":logout"),
            write=output.append,
        )

    assert output[0] == "Authorized"
    assert output[1] == "Datasets: books, films"
    assert any("cod result" in chunk for chunk in output)
    assert output[-1] == "Not logged in"
    search_requests = [r for r in server.requests if r.url.path == "/api/Search/books"]
    assert len(search_requests) == 3
    assert all(r.headers["Authorization"] == "Bearer tok" for r in search_requests)
