from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from flarecare.models import Appointment
from flarecare.reminders.selector import (
    appointment_instant,
    parse_time_of_day,
    reminder_due_at,
    select_due_appointments,
)

UTC = timezone.utc
WINDOW = timedelta(minutes=15)


def _apt(on=date(2025, 5, 10), at="14:00", minutes_before=30, sent_at=None):
    return Appointment(
        user_id="user-1",
        date=on,
        time=at,
        type="GP",
        reminder_minutes_before=minutes_before,
        reminder_sent_at=sent_at,
    )


def test_reminder_due_at_subtracts_minutes_before():
    assert reminder_due_at(_apt(), UTC) == datetime(2025, 5, 10, 13, 30, tzinfo=UTC)


def test_selected_just_after_due_instant():
    apt = _apt()
    now = datetime(2025, 5, 10, 13, 31, tzinfo=UTC)
    assert select_due_appointments([apt], now, UTC, WINDOW) == [apt]


def test_not_selected_once_outside_window():
    now = datetime(2025, 5, 10, 13, 50, tzinfo=UTC)
    assert select_due_appointments([_apt()], now, UTC, WINDOW) == []


def test_not_selected_before_due_instant():
    now = datetime(2025, 5, 10, 13, 29, tzinfo=UTC)
    assert select_due_appointments([_apt()], now, UTC, WINDOW) == []


def test_window_bounds_are_inclusive():
    apt = _apt()
    assert select_due_appointments([apt], datetime(2025, 5, 10, 13, 30, tzinfo=UTC), UTC, WINDOW) == [apt]
    assert select_due_appointments([apt], datetime(2025, 5, 10, 13, 45, tzinfo=UTC), UTC, WINDOW) == [apt]


def test_missing_time_means_midnight():
    apt = _apt(at=None, minutes_before=60)
    assert appointment_instant(apt, UTC) == datetime(2025, 5, 10, 0, 0, tzinfo=UTC)
    now = datetime(2025, 5, 9, 23, 5, tzinfo=UTC)
    assert select_due_appointments([apt], now, UTC, WINDOW) == [apt]


def test_time_with_seconds_uses_leading_hh_mm():
    assert parse_time_of_day("09:15:00") == parse_time_of_day("09:15")
    assert parse_time_of_day("9:15") == parse_time_of_day(None)


def test_unparseable_date_or_time_is_discarded():
    now = datetime(2025, 5, 10, 13, 31, tzinfo=UTC)
    bad_date = _apt(on="2025-13-40")
    bad_time = _apt(at="25:99")
    no_date = _apt(on=None)
    assert select_due_appointments([bad_date, bad_time, no_date], now, UTC, WINDOW) == []


def test_iso_string_dates_are_accepted():
    apt = _apt(on="2025-05-10")
    now = datetime(2025, 5, 10, 13, 31, tzinfo=UTC)
    assert select_due_appointments([apt], now, UTC, WINDOW) == [apt]


def test_already_sent_is_never_selected():
    apt = _apt(sent_at=datetime(2025, 5, 10, 13, 30, tzinfo=UTC))
    now = datetime(2025, 5, 10, 13, 31, tzinfo=UTC)
    assert select_due_appointments([apt], now, UTC, WINDOW) == []


def test_wall_clock_interpreted_in_configured_zone():
    tz = ZoneInfo("Europe/London")  # BST, UTC+1 in May
    apt = _apt()
    now = datetime(2025, 5, 10, 12, 31, tzinfo=UTC)
    assert select_due_appointments([apt], now, tz, WINDOW) == [apt]
    assert select_due_appointments([apt], now, UTC, WINDOW) == []


def test_input_order_is_preserved():
    first = _apt(at="14:00")
    second = _apt(at="13:55", minutes_before=25)
    now = datetime(2025, 5, 10, 13, 31, tzinfo=UTC)
    assert select_due_appointments([first, second], now, UTC, WINDOW) == [first, second]


def test_out_of_range_instants_are_discarded():
    now = datetime(2025, 5, 10, 13, 31, tzinfo=UTC)
    year_one = _apt(on=date(1, 1, 1), at="00:00", minutes_before=30)
    year_9999 = _apt(on=date(9999, 12, 31), at="23:59", minutes_before=-30)
    huge_offset = _apt(minutes_before=10 ** 12)
    for apt in (year_one, year_9999, huge_offset):
        assert reminder_due_at(apt, UTC) is None
    assert select_due_appointments([year_one, year_9999, huge_offset], now, UTC, WINDOW) == []


def test_bad_row_does_not_hide_valid_ones():
    good = _apt()
    now = datetime(2025, 5, 10, 13, 31, tzinfo=UTC)
    poisoned = _apt(on=date(1, 1, 1), at="00:00")
    assert select_due_appointments([poisoned, good], now, UTC, WINDOW) == [good]
