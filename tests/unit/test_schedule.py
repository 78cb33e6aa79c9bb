from __future__ import annotations

import pytest

from speedscore.api.errors import DateConflictError, ScheduleError
from speedscore.engine.schedule import (
    END_BEFORE_START_MESSAGE,
    END_DATE_CONFLICT_MESSAGE,
    START_AFTER_END_MESSAGE,
    START_DATE_CONFLICT_MESSAGE,
    RoundConflict,
    TournamentSchedule,
    division_key,
)


def _schedule(end_offset: int = 4, rounds=None) -> TournamentSchedule:
    return TournamentSchedule(
        "2026-06-01",
        end_offset,
        division_round_offsets={"open": dict(enumerate(rounds or []))},
        division_names={"open": "Open"},
    )


def test_end_date_is_derived_from_offset() -> None:
    schedule = _schedule(4)
    assert schedule.end_date == "2026-06-05"
    assert schedule.duration_days == 5
    assert schedule.date_for_offset(2) == "2026-06-03"


def test_invalid_start_date_is_rejected() -> None:
    with pytest.raises(ScheduleError):
        TournamentSchedule("June first")


def test_round_after_end_is_a_conflict() -> None:
    schedule = _schedule(6, rounds=[0, 5])
    before = schedule.to_dict()

    with pytest.raises(DateConflictError) as excinfo:
        schedule.change_end_date("2026-06-05")

    assert excinfo.value.message == END_DATE_CONFLICT_MESSAGE
    assert excinfo.value.conflicts == [RoundConflict("open", 1, 5, "Open")]
    assert excinfo.value.conflicts[0].describe() == "Open Round 2 (Day 6)"
    assert schedule.to_dict() == before


def test_rejected_edit_can_be_repeated_without_effect() -> None:
    schedule = _schedule(6, rounds=[0, 5])
    before = schedule.to_dict()
    for _ in range(2):
        with pytest.raises(DateConflictError):
            schedule.set_end_date_offset(4)
        assert schedule.to_dict() == before


def test_later_start_keeps_end_date_and_checks_rounds() -> None:
    schedule = _schedule(4, rounds=[0, 3])

    with pytest.raises(DateConflictError) as excinfo:
        schedule.change_start_date("2026-06-03")
    assert excinfo.value.message == START_DATE_CONFLICT_MESSAGE
    assert schedule.start_date == "2026-06-01"

    schedule.change_start_date("2026-06-02")
    assert schedule.start_date == "2026-06-02"
    assert schedule.end_date == "2026-06-05"
    assert schedule.end_date_offset == 3
    assert schedule.round_offsets("open") == [0, 3]


def test_earlier_start_extends_the_window() -> None:
    schedule = _schedule(1, rounds=[0, 1])
    schedule.change_start_date("2026-05-30")
    assert schedule.end_date_offset == 3
    assert len(schedule.tee_time_offsets) == 4


def test_start_after_end_is_rejected() -> None:
    schedule = _schedule(2)
    with pytest.raises(DateConflictError) as excinfo:
        schedule.change_start_date("2026-06-10")
    assert excinfo.value.message == START_AFTER_END_MESSAGE
    assert excinfo.value.conflicts == []


def test_end_before_start_is_rejected() -> None:
    schedule = _schedule(2)
    with pytest.raises(DateConflictError) as excinfo:
        schedule.change_end_date("2026-05-31")
    assert excinfo.value.message == END_BEFORE_START_MESSAGE
    assert schedule.end_date_offset == 2


def test_shift_moves_every_date() -> None:
    schedule = _schedule(2, rounds=[0, 2])
    schedule.shift_start_date("2026-07-01")
    assert schedule.end_date == "2026-07-03"
    assert schedule.date_for_offset(schedule.round_offsets("open")[1]) == "2026-07-03"


@pytest.mark.parametrize("new_end", ["2026-06-01", "2026-06-03", "2026-06-04", "2026-06-20"])
@pytest.mark.parametrize("new_start", ["2026-05-20", "2026-06-01", "2026-06-02", "2026-06-04"])
def test_accepted_edits_keep_rounds_inside(new_start: str, new_end: str) -> None:
    schedule = _schedule(4, rounds=[0, 1, 2])
    for edit, value in ((schedule.change_start_date, new_start), (schedule.change_end_date, new_end)):
        before = schedule.to_dict()
        try:
            edit(value)
        except DateConflictError:
            assert schedule.to_dict() == before
        for offset in schedule.round_offsets("open"):
            assert 0 <= offset <= schedule.end_date_offset


def test_tee_times_follow_tournament_days() -> None:
    schedule = _schedule(2)
    assert schedule.tee_time_offsets == [
        {"dayOffset": 0, "startTime": "07:00"},
        {"dayOffset": 1, "startTime": "07:00"},
        {"dayOffset": 2, "startTime": "07:00"},
    ]

    schedule.set_tee_time(1, "08:30")
    schedule.set_end_date_offset(3)
    assert [t["startTime"] for t in schedule.tee_time_offsets] == ["07:00", "08:30", "07:00", "07:00"]

    schedule.set_end_date_offset(0)
    assert schedule.tee_time_offsets == [{"dayOffset": 0, "startTime": "07:00"}]


def test_default_tee_time_comes_from_config(isolated_config) -> None:
    isolated_config.set("tournament.default_tee_time", "06:45")
    assert TournamentSchedule("2026-06-01").tee_time_offsets == [{"dayOffset": 0, "startTime": "06:45"}]


@pytest.mark.parametrize("day, value", [(0, "7am"), (0, "25:00"), (0, ""), (3, "07:00"), (-1, "07:00")])
def test_bad_tee_times_are_rejected(day: int, value: str) -> None:
    schedule = _schedule(2)
    with pytest.raises(ScheduleError):
        schedule.set_tee_time(day, value)


def test_new_division_rounds_default_to_consecutive_days() -> None:
    schedule = TournamentSchedule("2026-06-01", 1)
    schedule.set_division("d1", "Women", 3)
    assert schedule.round_offsets("d1") == [0, 1, 1]

    schedule.set_division("d1", round_count=1)
    assert schedule.round_offsets("d1") == [0]
    assert schedule.division_names["d1"] == "Women"

    schedule.remove_division("d1")
    assert schedule.round_offsets("d1") == []


def test_round_offsets_respect_range_and_order() -> None:
    schedule = _schedule(4, rounds=[1, 2, 3])

    with pytest.raises(ScheduleError, match="Round 2 must be between Day 1 and Day 5"):
        schedule.set_round_offset("open", 1, 5)
    with pytest.raises(ScheduleError, match="Round 2 must be on or after Day 2"):
        schedule.set_round_offset("open", 1, 0)
    with pytest.raises(ScheduleError, match="Round 2 must be on or before Day 4"):
        schedule.set_round_offset("open", 1, 4)
    with pytest.raises(ScheduleError):
        schedule.set_round_offset("open", 1, "2")

    schedule.set_round_offset("open", 1, 3)
    assert schedule.round_offsets("open") == [1, 3, 3]


def test_round_options_mark_blocked_days() -> None:
    schedule = _schedule(2, rounds=[1, 1])
    options = schedule.round_options("open")
    assert [o["disabled"] for o in options[0]] == [False, False, True]
    assert [o["disabled"] for o in options[1]] == [True, False, False]


def test_registration_dates_default_before_start() -> None:
    assert _schedule(0).registration_dates() == {
        "regStartDate": "2026-05-02",
        "regEndDate": "2026-05-29",
        "withdrawalDeadline": "2026-05-25",
    }


def test_division_key_prefers_client_id() -> None:
    assert division_key({"clientId": "c1", "_id": "m1"}) == "c1"
    assert division_key({"_id": "m1", "id": "x"}) == "m1"
    assert division_key({"id": "x"}) == "x"
    assert division_key({}) is None


TOURNAMENT = {
    "_id": "t1",
    "basicInfo": {
        "name": "Spring Speedgolf Open",
        "startDate": "2026-06-01T00:00:00.000Z",
        "endDate": "2026-06-03",
        "teeTimes": [{"date": "2026-06-02", "startTime": "08:00"}],
    },
    "regPaymentInfo": {
        "regStartDate": "2026-05-01",
        "regEndDate": "2026-05-30",
        "maxAllowedWithdraDate": "2026-05-25",
    },
    "divisions": [
        {
            "clientId": "d1",
            "name": "Open",
            "rounds": [{"_id": "r1", "date": "2026-06-01", "format": "Speedgolf"}, {"date": "2026-06-03"}],
        },
        {"_id": "d2", "name": "Seniors", "rounds": [{"dayOffset": 1}, {}]},
    ],
}


def test_from_tournament_reads_offsets() -> None:
    schedule = TournamentSchedule.from_tournament(TOURNAMENT)

    assert schedule.start_date == "2026-06-01"
    assert schedule.end_date_offset == 2
    assert [t["startTime"] for t in schedule.tee_time_offsets] == ["07:00", "08:00", "07:00"]
    assert schedule.round_offsets("d1") == [0, 2]
    assert schedule.round_offsets("d2") == [1, 1]
    assert schedule.registration_open_offset == -31
    assert schedule.registration_close_offset == -2
    assert schedule.withdrawal_deadline_offset == -7


def test_from_tournament_keeps_stale_rounds_as_conflicts() -> None:
    stale = {
        "basicInfo": {"startDate": "2026-06-01", "endDate": "2026-06-02"},
        "divisions": [{"clientId": "d1", "name": "Open", "rounds": [{"date": "2026-06-04"}]}],
    }
    schedule = TournamentSchedule.from_tournament(stale)
    assert schedule.has_conflicts()
    assert schedule.find_conflicts(schedule.end_date_offset)[0].day_offset == 3


def test_from_tournament_requires_start_date() -> None:
    with pytest.raises(ScheduleError):
        TournamentSchedule.from_tournament({"basicInfo": {}})


def test_payload_converts_offsets_back_to_dates() -> None:
    schedule = TournamentSchedule.from_tournament(TOURNAMENT)
    schedule.set_round_offset("d1", 1, 1)

    payload = schedule.to_payload(TOURNAMENT["divisions"])

    assert payload["basicInfo"] == {
        "startDate": "2026-06-01",
        "endDate": "2026-06-03",
        "teeTimes": [
            {"date": "2026-06-01", "startTime": "07:00"},
            {"date": "2026-06-02", "startTime": "08:00"},
            {"date": "2026-06-03", "startTime": "07:00"},
        ],
    }
    assert payload["regPaymentInfo"]["regStartDate"] == "2026-05-01"
    assert payload["regPaymentInfo"]["withdrawalDeadline"] == "2026-05-25"

    open_rounds = payload["divisions"][0]["rounds"]
    assert open_rounds[0] == {"format": "Speedgolf", "date": "2026-06-01", "dayOffset": 0}
    assert open_rounds[1] == {"date": "2026-06-02", "dayOffset": 1}
    assert [r["date"] for r in payload["divisions"][1]["rounds"]] == ["2026-06-02", "2026-06-02"]
    # Source document untouched
    assert TOURNAMENT["divisions"][0]["rounds"][0]["_id"] == "r1"


def test_payload_without_divisions() -> None:
    assert "divisions" not in _schedule(0).to_payload()


def test_cascade_moves_out_of_order_rounds() -> None:
    schedule = _schedule(6, rounds=[1, 2, 3, 4])

    schedule.set_round_offset("open", 1, 5, cascade=True)
    assert schedule.round_offsets("open") == [1, 5, 5, 5]

    schedule.set_round_offset("open", 2, 0, cascade=True)
    assert schedule.round_offsets("open") == [0, 0, 0, 5]


def test_cascade_still_checks_the_tournament_range() -> None:
    schedule = _schedule(4, rounds=[1, 2])
    with pytest.raises(ScheduleError):
        schedule.set_round_offset("open", 0, 5, cascade=True)
    assert schedule.round_offsets("open") == [1, 2]


@pytest.mark.parametrize("round_count", [-1, 5])
def test_division_round_count_is_limited(round_count: int) -> None:
    schedule = _schedule(4)
    with pytest.raises(ScheduleError):
        schedule.set_division("d2", "Seniors", round_count)
    assert "d2" not in schedule.division_round_offsets


def test_negative_end_offset_is_rejected() -> None:
    with pytest.raises(ScheduleError, match=END_BEFORE_START_MESSAGE):
        TournamentSchedule("2026-06-01", -2)


def test_from_dates() -> None:
    assert TournamentSchedule.from_dates("2026-06-01", "2026-06-04").end_date_offset == 3
    assert TournamentSchedule.from_dates("2026-06-01").end_date_offset == 0
    with pytest.raises(ScheduleError, match=END_BEFORE_START_MESSAGE):
        TournamentSchedule.from_dates("2026-06-05", "2026-06-01")
    with pytest.raises(ScheduleError, match="Invalid tournament end date"):
        TournamentSchedule.from_dates("2026-06-01", "soon")
