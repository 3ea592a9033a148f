"""Tests for picking the down-sampling level from a date range."""

from datetime import date

import pytest

from src.sitewatch.history.sampling import Sampling, choose_sampling, parse_date, time_bounds


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("2024-03-01", "2024-03-01", Sampling.RAW),
        ("2024-03-01", "2024-03-08", Sampling.RAW),
        ("2024-03-01", "2024-03-09", Sampling.HOURLY),
        ("2024-03-01", "2024-03-31", Sampling.HOURLY),
        ("2024-03-01", "2024-04-01", Sampling.DAILY),
        ("2024-01-01", "2024-12-31", Sampling.DAILY),
    ],
)
def test_choose_sampling(start, end, expected):
    assert choose_sampling(parse_date(start), parse_date(end)) is expected


def test_time_bounds_cover_whole_days():
    assert time_bounds(date(2024, 3, 1), date(2024, 3, 1)) == ("2024-03-01 00:00:00", "2024-03-01 23:59:59")


def test_parse_date():
    assert parse_date(" 2024-02-29 ") == date(2024, 2, 29)
    assert parse_date(date(2024, 1, 2)) == date(2024, 1, 2)
    with pytest.raises(ValueError):
        parse_date("01/03/2024")
