from datetime import date

import pytest

from marksboard.services.semester import current_semester, raw_semester

TODAY_YEAR = 2026


@pytest.mark.parametrize("graduation_year, month, expected", [
    (TODAY_YEAR + 4, 1, 1),      # raw 0, clamped up
    (TODAY_YEAR + 4, 7, 1),      # raw -1, clamped up
    (TODAY_YEAR + 3, 1, 2),
    (TODAY_YEAR + 3, 9, 1),
    (TODAY_YEAR + 2, 6, 4),      # June is still the first half
    (TODAY_YEAR + 2, 7, 3),
    (TODAY_YEAR + 1, 1, 6),
    (TODAY_YEAR + 1, 7, 5),
    (TODAY_YEAR, 3, 8),
    (TODAY_YEAR, 11, 7),
])
def test_current_semester_fixtures(graduation_year, month, expected):
    assert current_semester(graduation_year, date(TODAY_YEAR, month, 15)) == expected


def test_raw_semester_is_unclamped():
    assert raw_semester(TODAY_YEAR + 4, date(TODAY_YEAR, 8, 1)) == -1
    assert raw_semester(TODAY_YEAR - 2, date(TODAY_YEAR, 2, 1)) == 12


def test_far_past_and_future_graduation_years_are_clamped():
    today = date(TODAY_YEAR, 5, 1)
    assert current_semester(1990, today) == 8
    assert current_semester(2100, today) == 1


def test_result_always_in_range():
    for graduation_year in range(TODAY_YEAR - 10, TODAY_YEAR + 15):
        for month in range(1, 13):
            semester = current_semester(graduation_year, date(TODAY_YEAR, month, 1))
            assert isinstance(semester, int)
            assert 1 <= semester <= 8


def test_defaults_to_today():
    today = date.today()
    assert current_semester(today.year + 1) == current_semester(today.year + 1, today)
