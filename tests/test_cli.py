"""
Tests for the console helpers.
"""

from travelcrm.cli import PREVIEW_COLUMNS, render_records
from travelcrm.config import MAX_PREVIEW_ROWS
from travelcrm.scoped_queries import get_leads


def test_render_records_empty():
    assert render_records("leads", []) == "(no rows returned)"


def test_render_records_keeps_preview_columns_only(engine, scenario):
    out = render_records("leads", get_leads(engine, 2).records)
    header = out.splitlines()[0].split()
    assert header == [c for c in PREVIEW_COLUMNS["leads"]]
    assert "Paris" in out and "Rome" in out
    assert "Tokyo" not in out


def test_render_records_caps_rows():
    records = [{"id": i, "name": f"C{i}"} for i in range(MAX_PREVIEW_ROWS + 5)]
    out = render_records("customers", records)
    # header plus capped rows; missing preview columns are skipped
    assert len(out.splitlines()) == MAX_PREVIEW_ROWS + 1
    assert out.splitlines()[0].split() == ["id", "name"]
