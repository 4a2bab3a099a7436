"""Terminal demo entrypoint."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable

import httpx

from indx_search.config import ClientSettings, get_settings
from indx_search.logging import configure_logging, logger
from indx_search.services.live_search import LiveSearch
from indx_search.services.search import SearchClient
from indx_search.services.session import SessionManager
from indx_search.ui.results import render_view

HELP = (
    "Type a query and press enter. Commands: :type <text> (search every prefix as "
    "keystrokes), :login, :logout, :dataset <id>, :datasets, :quit"
)


async def read_lines(prompt: str) -> AsyncIterator[str]:
    while True:
        try:
            line = await asyncio.to_thread(input, prompt)
        except EOFError:
            return
        yield line


async def run(
    settings: ClientSettings,
    http_client: httpx.AsyncClient,
    lines: AsyncIterator[str],
    write: Callable[[str], None] = print,
) -> None:
    config = settings.query_configuration()
    sessions = SessionManager(
        http_client, base_url=config.base_url, timeout=settings.login_timeout_seconds
    )
    client = SearchClient(http_client, datasets_retry_attempts=settings.datasets_retry_attempts)
    live = LiveSearch(client, sessions, config)

    async def login() -> None:
        if not settings.has_credentials:
            write("No credentials configured (INDX_USERNAME / INDX_PASSWORD).")
            return
        session = await sessions.login(settings.username, settings.password)
        write(session.status_message)

    async def show_datasets() -> None:
        datasets = await client.list_datasets(live.config, sessions.token)
        write(f"Datasets: {', '.join(datasets) if datasets else '(none)'}")

    if settings.has_credentials:
        await login()
        await show_datasets()
    else:
        write(sessions.session.status_message)
    write(HELP)

    async for line in lines:
        command, _, argument = line.strip().partition(" ")
        if command == ":quit":
            break
        if command == ":login":
            await login()
            continue
        if command == ":logout":
            write(sessions.logout().status_message)
            continue
        if command == ":datasets":
            await show_datasets()
            continue
        if command == ":dataset":
            live.update_config(live.config.with_changes(dataset=argument.strip() or "0"))
            write(f"Dataset: {live.config.dataset}")
            continue
        if command == ":type":
            tasks = [live.submit(argument[:end]) for end in range(1, len(argument) + 1)]
            await asyncio.gather(*tasks)
        else:
            await live.on_input(line)
        write(render_view(live.view, live.config, settings.dataset_description))

    logger.info("demo_finished", searches=live.latest_issued)


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level_value)
    logger.info("demo_starting", api_url=settings.api_url, dataset=settings.dataset)
    async with httpx.AsyncClient() as http_client:
        await run(settings, http_client, read_lines(f"{settings.placeholder_text}: "))


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
