"""Tests for plain-text result rendering."""

from __future__ import annotations

from indx_search.domain.models import SearchRecord, SearchResultView
from indx_search.ui import results


def _view(count: int, truncation_index: int = -1) -> SearchResultView:
    records = tuple(
        SearchRecord(
            metric_score=200 - index,
            text=f"entry {index}",
            document_key=f"k{index}",
            segment_number=index,
        )
        for index in range(count)
    )
    return SearchResultView(query_text="entry", records=records, truncation_index=truncation_index)


def test_header_hides_meta_by_default(config):
    lines = results.render_header(config, "Books")
    assert lines == ["INDX SEARCH SYSTEM", "Dataset: Books"]


def test_header_with_meta(config):
    lines = results.render_header(config.with_changes(show_meta=True), "Books")
    assert lines[1] == "Dataset: Books / Heap: demo"
    assert lines[3] == "Url: https://indx.test/api/"


def test_rows_mark_boundary_and_cut_entries():
    lines = list(results.render_rows(_view(4, truncation_index=1)))

    assert len(lines) == 5
    assert lines[2] == results.BOUNDARY_LINE
    assert not lines[0].startswith(results.CUT_MARKER)
    assert lines[3].startswith(results.CUT_MARKER)
    assert lines[4].startswith(results.CUT_MARKER)
    assert "entry 3" in lines[4]


def test_rows_without_truncation_have_no_markers():
    lines = list(results.render_rows(_view(3)))

    assert results.BOUNDARY_LINE not in lines
    assert not any(line.startswith(results.CUT_MARKER) for line in lines)


def test_meta_appends_key_and_segment():
    line = next(iter(results.render_rows(_view(3), show_meta=True)))
    assert line.endswith("[k0.0]")


def test_empty_view(config):
    text = results.render_view(SearchResultView.empty(), config, "Books")
    assert text.splitlines()[-1] == results.EMPTY_LINE
