from booking.schemas.calendar import WorkingCalendarConfig, WorkingHours
from booking.scheduling.clock import format_minutes, parse_hhmm
from booking.scheduling.slots import TimeSlots, generate_time_slots


def _config(start="09:00", end="18:00", gap=30):
    return WorkingCalendarConfig(
        working_hours=WorkingHours(start=start, end=end),
        slot_gap_minutes=gap,
    )


def test_slots_end_is_exclusive():
    assert list(TimeSlots(_config("09:00", "11:00", 30))) == ["09:00", "09:30", "10:00", "10:30"]


def test_slots_with_gap_not_dividing_the_day():
    slots = list(TimeSlots(_config("09:00", "10:00", 25)))
    assert slots == ["09:00", "09:25", "09:50"]
    assert len(TimeSlots(_config("09:00", "10:00", 25))) == 3


def test_unparsable_hours_fall_back_to_hourly_day():
    slots = list(TimeSlots(_config("nine", "18:00", 30)))
    assert slots == [f"{h:02d}:00" for h in range(9, 18)]
    assert len(slots) == 9


def test_slots_are_restartable():
    slots = generate_time_slots(_config("09:00", "11:00", 30))
    assert list(slots) == list(slots)
    assert len(slots) == 4


def test_default_config_gives_eighteen_half_hour_slots():
    slots = list(TimeSlots(WorkingCalendarConfig()))
    assert slots[0] == "09:00"
    assert slots[-1] == "17:30"
    assert len(slots) == 18


def test_config_accepts_stored_camel_case_blob():
    config = WorkingCalendarConfig.model_validate({
        "workingDays": [1, 2],
        "workingHours": {"start": "10:00", "end": "12:00"},
        "timeSlotGap": 60,
    })
    assert list(TimeSlots(config)) == ["10:00", "11:00"]
    assert config.to_blob()["workingDays"] == [1, 2]


def test_parse_hhmm():
    assert parse_hhmm("09:30") == 570
    assert parse_hhmm("24:00") == 1440
    assert parse_hhmm("9am") is None
    assert parse_hhmm("10:75") is None
    assert parse_hhmm(None) is None
    assert format_minutes(570) == "09:30"
