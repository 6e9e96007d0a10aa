"""
Unit tests for domain dataclasses – roles, filters, pages.
"""

import pytest

from travelcrm.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from travelcrm.errors import InvalidFilter, UnsupportedRole
from travelcrm.models import ListFilters, Page, Role


# ── Tests: Role ──────────────────────────────────────────────────────

def test_role_parse_known_values():
    assert Role.parse("super") is Role.SUPER
    assert Role.parse("ADMIN") is Role.ADMIN
    assert Role.parse(" sales ") is Role.SALES


@pytest.mark.parametrize("value", ["caller", "", None, "root"])
def test_role_parse_rejects_unknown(value):
    with pytest.raises(UnsupportedRole):
        Role.parse(value)


# ── Tests: ListFilters ───────────────────────────────────────────────

def test_list_filters_defaults_are_unbounded():
    f = ListFilters()
    assert f.limit is None and f.offset is None
    assert f.page == 1


def test_list_filters_offset_requires_limit():
    with pytest.raises(InvalidFilter, match="requires 'limit'"):
        ListFilters(offset=10)


def test_list_filters_rejects_bad_direction():
    with pytest.raises(InvalidFilter, match="direction"):
        ListFilters(direction="sideways")


def test_from_params_page_to_offset():
    f = ListFilters.from_params({"page": "3", "limit": "10", "status": "new"})
    assert f.limit == 10
    assert f.offset == 20
    assert f.page == 3
    assert f.status == "new"


def test_from_params_defaults_and_blank_values():
    f = ListFilters.from_params({"status": "", "search": "   "})
    assert f.limit == DEFAULT_PAGE_SIZE
    assert f.offset == 0
    assert f.status is None
    assert f.search is None


@pytest.mark.parametrize("params", [
    {"page": "0"},
    {"page": "abc"},
    {"limit": "-1"},
    {"limit": str(MAX_PAGE_SIZE + 1)},
    {"booking_id": "x"},
])
def test_from_params_rejects_malformed(params):
    with pytest.raises(InvalidFilter):
        ListFilters.from_params(params)


def test_from_params_keeps_search_text_verbatim():
    f = ListFilters.from_params({"search": "'; DROP TABLE leads; --"})
    assert f.search == "'; DROP TABLE leads; --"


# ── Tests: Page ──────────────────────────────────────────────────────

def test_page_pages_rounds_up():
    page = Page(records=[], page=1, limit=10, total=21)
    assert page.pages == 3


def test_page_unpaginated_pages():
    assert Page(records=[{}], page=1, limit=None, total=1).pages == 1
    assert Page(records=[], page=1, limit=None, total=0).pages == 0


def test_page_to_dict_shape():
    out = Page(records=[{"id": 1}], page=2, limit=1, total=5).to_dict()
    assert out == {
        "records": [{"id": 1}],
        "pagination": {"page": 2, "limit": 1, "total": 5, "pages": 5},
    }
