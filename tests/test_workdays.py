from datetime import date

from schedule.workdays import HolidayCalendar


def test_weekends_are_not_working_days():
    cal = HolidayCalendar.weekends_only()
    assert not cal.is_working_day(date(2024, 6, 1))   # Saturday
    assert not cal.is_working_day(date(2024, 6, 2))   # Sunday
    assert cal.is_working_day(date(2024, 6, 3))       # Monday


def test_listed_holiday_is_not_a_working_day():
    cal = HolidayCalendar(["2024-12-25"])
    assert not cal.is_working_day(date(2024, 12, 25))
    assert cal.is_working_day(date(2024, 12, 24))


def test_next_working_day_skips_weekend_and_holiday():
    cal = HolidayCalendar([date(2024, 4, 1)])
    # Saturday, Sunday, then listed Easter Monday
    assert cal.next_working_day(date(2024, 3, 30)) == date(2024, 4, 2)
    assert cal.next_working_day(date(2024, 6, 3)) == date(2024, 6, 3)


def test_prior_working_day_walks_backward():
    cal = HolidayCalendar(["2024-03-29", "2024-04-01"])
    assert cal.prior_working_day(date(2024, 4, 1)) == date(2024, 3, 28)
    assert cal.prior_working_day(date(2024, 5, 25)) == date(2024, 5, 24)


def test_unparseable_holidays_are_skipped():
    cal = HolidayCalendar(["2024-12-25", "not-a-date"])
    assert len(cal) == 1
    assert cal.holidays == frozenset({date(2024, 12, 25)})


def test_gov_uk_payload_reads_the_requested_division():
    payload = {
        "england-and-wales": {"events": [{"title": "Christmas Day", "date": "2024-12-25"}]},
        "scotland": {"events": [{"date": "2024-01-02"}, {"date": "2024-12-25"}]},
    }
    assert HolidayCalendar.from_gov_uk_payload(payload).holidays == {date(2024, 12, 25)}
    assert len(HolidayCalendar.from_gov_uk_payload(payload, "scotland")) == 2


def test_unusable_payload_degrades_to_weekends_only():
    assert len(HolidayCalendar.from_gov_uk_payload(None)) == 0
    assert len(HolidayCalendar.from_gov_uk_payload({"scotland": {}})) == 0
    cal = HolidayCalendar.from_gov_uk_payload({"england-and-wales": {"events": None}})
    assert cal.next_working_day(date(2024, 6, 1)) == date(2024, 6, 3)


def test_events_without_a_date_are_skipped():
    payload = {
        "england-and-wales": {
            "events": [{"date": "2024-12-25"}, {"title": "Boxing Day"}, "2024-12-26", None],
        },
    }
    assert HolidayCalendar.from_gov_uk_payload(payload).holidays == {date(2024, 12, 25)}
