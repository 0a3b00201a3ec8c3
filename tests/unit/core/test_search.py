"""Unit tests for core/search.py"""

import pytest

from docstore.core.search import search_lines


TEXT = "alpha\nbeta\nGamma ray\ndelta\nepsilon\nzeta gamma\n"


def test_search_lines_reports_one_based_line_numbers():
    """Each match records the 1-based line number and the full line."""
    matches = search_lines(TEXT, "beta")
    assert [(m.line, m.content) for m in matches] == [(2, "beta")]


def test_search_lines_case_insensitive():
    """Matching ignores case in both query and text."""
    assert [m.line for m in search_lines(TEXT, "GAMMA")] == [3, 6]


def test_search_lines_context_window():
    """Context includes up to `context` lines either side, clipped at the edges."""
    first, last = search_lines(TEXT, "gamma", context=1)
    assert first.context == ["beta", "Gamma ray", "delta"]
    assert last.context == ["epsilon", "zeta gamma"]


@pytest.mark.parametrize("query", ["", "   ", "omega"])
def test_search_lines_no_match(query):
    """Empty queries and absent terms return no matches."""
    assert search_lines(TEXT, query) == []
