import pytest

from app.services.date_normalizer import normalize_date


@pytest.mark.parametrize("raw, expected", [
    ("15/03/2024", "2024-03-15"),
    ("5-3-2024", "2024-03-05"),
    ("2024/3/5", "2024-03-05"),
    ("2024-12-31", "2024-12-31"),
    ("29/02/2024", "2024-02-29"),
    (" 01/01/2025 ", "2025-01-01"),
    ("2024-03-15T10:30:00Z", "2024-03-15"),
    ("15 March 2024", "2024-03-15"),
])
def test_valid_formats_normalize_to_iso(raw, expected):
    result = normalize_date(raw)
    assert result.ok
    assert result.value == expected


@pytest.mark.parametrize("raw", ["31/02/2024", "29/02/2023", "00/01/2024", "13/13/2024", "no es fecha"])
def test_impossible_or_unparseable_dates_are_invalid(raw):
    result = normalize_date(raw)
    assert result.is_invalid
    assert result.value is None
    assert result.raw == raw


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_blank_cells_are_not_invalid(raw):
    result = normalize_date(raw)
    assert result.is_blank
    assert not result.is_invalid


def test_normalizing_output_again_is_a_no_op():
    for raw in ["15/03/2024", "2024/3/5", "1-12-2030"]:
        first = normalize_date(raw).value
        assert normalize_date(first).value == first
