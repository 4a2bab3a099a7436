"""Plain-text rendering of search result views."""

from __future__ import annotations

from typing import Iterable

from indx_search.domain.models import QueryConfiguration, ResultRow, SearchResultView

TITLE = "INDX SEARCH SYSTEM"
CUT_MARKER = "~"
BOUNDARY_LINE = "-" * 40
EMPTY_LINE = "No results"


def render_header(config: QueryConfiguration, dataset_description: str) -> list[str]:
    lines = [TITLE]
    if config.show_meta:
        coverage = "coverage" if config.apply_coverage else "relevancy"
        lines.extend(
            [
                f"Dataset: {dataset_description} / Heap: {config.dataset}",
                f"Algorithm: {coverage} (protocol {config.protocol_version})",
                f"Url: {config.base_url}",
            ]
        )
    else:
        lines.append(f"Dataset: {dataset_description}")
    return lines


def render_row(row: ResultRow, show_meta: bool = False) -> str:
    marker = CUT_MARKER if row.below_confidence else " "
    text = row.record.text
    if show_meta:
        text = f"{text}  [{row.record.document_key}.{row.record.segment_number}]"
    return f"{marker}{row.rank:>3} {row.record.metric_score:>3}  {text}"


def render_rows(view: SearchResultView, show_meta: bool = False) -> Iterable[str]:
    if not view.records:
        yield EMPTY_LINE
        return
    for row in view.rows():
        yield render_row(row, show_meta)
        if row.last_confident:
            yield BOUNDARY_LINE


def render_view(
    view: SearchResultView,
    config: QueryConfiguration,
    dataset_description: str = "Undefined",
) -> str:
    lines = render_header(config, dataset_description)
    lines.extend(render_rows(view, config.show_meta))
    return "\n".join(lines)


__all__ = ["render_header", "render_row", "render_rows", "render_view"]
