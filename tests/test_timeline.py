"""
Timeline generation tests against the bundled catalog.

Reference day 2024-03-15, wake 07:00, bed 23:00, no training unless a
test says otherwise.  With those anchors the applicable catalog resolves
to (hand-computed):

    07:00 morning_light        07:30 morning_movement   07:45 breathwork_morning
    08:00 first_meal           08:00 journaling         09:00 cold_exposure
    13:00 caffeine_cutoff      20:00 last_meal          21:00 dim_lights
    21:30 evening_gratitude    22:00 wind_down          22:15 sleep_supplements

Segment edges: morning ends 11:00, evening starts 17:00, wind-down 21:00.
"""

from datetime import date, datetime, timedelta

import pytest

from anchor_scheduler.core.catalog import ProtocolCatalog, default_catalog
from anchor_scheduler.core.models import Protocol, SessionRecord, UserTimeAnchors
from anchor_scheduler.core.timeline import (
    DayBoundaries,
    generate_timeline,
    sort_actions,
)

DAY = date(2024, 3, 15)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep user overrides in the real home directory out of the catalog."""
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest.fixture
def catalog() -> ProtocolCatalog:
    return default_catalog()


def _at(hhmm: str, day: date = DAY) -> datetime:
    h, m = (int(x) for x in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, h, m)


def _anchors(**overrides) -> UserTimeAnchors:
    base = dict(target_bed_time=_at("23:00"), wake_time_today=_at("07:00"))
    base.update(overrides)
    return UserTimeAnchors(**base)


def _protocol(pid: str, anchor: str = "wake", offset: int = 0, window: int = 30, **kw) -> Protocol:
    return Protocol(
        id=pid,
        name=pid.replace("_", " ").title(),
        description="test protocol",
        domain=kw.pop("domain", "longevity"),
        relative_to=anchor,
        offset_minutes=offset,
        window_minutes=window,
        priority=kw.pop("priority", "medium"),
        is_skippable=kw.pop("is_skippable", True),
        duration_minutes=kw.pop("duration_minutes", window),
        **kw,
    )


def _ids(actions) -> list[str]:
    return [a.protocol.id for a in actions]


# ---------------------------------------------------------------------------
# Resolution scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_morning_sunlight_window(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        action = tl.find("morning_light")
        assert action.scheduled_time == _at("07:00")
        assert action.window_end == _at("08:00")
        assert action.relative_label == "Wake +0m"

    def test_caffeine_cutoff_is_point_in_time(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        action = tl.find("caffeine_cutoff")
        assert action.scheduled_time == _at("13:00")
        assert action.window_end == _at("13:00")
        assert action.window == timedelta(0)
        assert action.relative_label == "Sleep -10h"

    def test_cold_exposure_window(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        action = tl.find("cold_exposure")
        assert action.scheduled_time == _at("09:00")
        assert action.window_end == _at("13:00")

    def test_every_action_matches_its_anchor(self, catalog):
        anchors = _anchors(training_time="17:00", has_training_today=True)
        tl = generate_timeline(anchors, catalog=catalog, now=_at("12:00"))
        bases = {
            "wake": _at("07:00"),
            "sleep": _at("23:00"),
            "training": _at("17:00"),
            "first_meal": _at("08:00"),
            "last_meal": _at("20:00"),
        }
        for a in tl.all_actions:
            p = a.protocol
            expected = bases[p.relative_to] + timedelta(minutes=p.offset_minutes)
            assert a.scheduled_time == expected, p.id
            assert a.window_end == expected + timedelta(minutes=p.window_minutes), p.id

    def test_action_ids_carry_the_date(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        assert tl.find("morning_light").id == "morning_light_2024-03-15"
        assert tl.date == DAY


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFiltering:
    TRAINING_ONLY = {"pre_training_fuel", "post_training_fuel", "post_training_recovery"}

    def test_rest_day_drops_training_protocols(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        assert len(tl.all_actions) == 12
        assert not self.TRAINING_ONLY & set(_ids(tl.all_actions))

    def test_training_day_includes_training_protocols(self, catalog):
        anchors = _anchors(training_time="17:00", has_training_today=True)
        tl = generate_timeline(anchors, catalog=catalog, now=_at("12:00"))
        assert len(tl.all_actions) == 15
        assert self.TRAINING_ONLY <= set(_ids(tl.all_actions))
        assert tl.find("pre_training_fuel").scheduled_time == _at("15:30")
        assert tl.find("post_training_fuel").window_end == _at("19:00")

    def test_only_if_no_training(self, catalog):
        rest_walk = _protocol("rest_walk", offset=300, only_if_no_training=True)
        rest_day = generate_timeline(_anchors(), extra_protocols=[rest_walk], catalog=catalog, now=_at("12:00"))
        training_day = generate_timeline(
            _anchors(training_time="17:00", has_training_today=True),
            extra_protocols=[rest_walk],
            catalog=catalog,
            now=_at("12:00"),
        )
        assert rest_day.find("rest_walk") is not None
        assert training_day.find("rest_walk") is None

    @pytest.mark.parametrize("score,included", [(60, False), (69.9, False), (70, True), (95, True)])
    def test_min_recovery_score_threshold(self, catalog, score, included):
        sauna = _protocol("evening_sauna", anchor="sleep", offset=-240, min_recovery_score=70)
        tl = generate_timeline(
            _anchors(), recovery_score=score, extra_protocols=[sauna], catalog=catalog, now=_at("12:00")
        )
        assert (tl.find("evening_sauna") is not None) is included

    def test_empty_catalog(self):
        tl = generate_timeline(_anchors(), catalog=ProtocolCatalog(()), now=_at("12:00"))
        assert tl.all_actions == []
        assert tl.current_action is None
        assert tl.next_action is None


# ---------------------------------------------------------------------------
# Ordering and segments
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_sorted_by_time_with_stable_ties(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        assert _ids(tl.all_actions) == [
            "morning_light",
            "morning_movement",
            "breathwork_morning",
            "first_meal",        # 08:00, earlier in catalog order
            "journaling",        # 08:00
            "cold_exposure",
            "caffeine_cutoff",
            "last_meal",
            "dim_lights",
            "evening_gratitude",
            "wind_down",
            "sleep_supplements",
        ]
        times = [a.scheduled_time for a in tl.all_actions]
        assert times == sorted(times)

    def test_extra_protocol_tie_follows_catalog(self, catalog):
        twin = _protocol("light_twin", offset=0)
        tl = generate_timeline(_anchors(), extra_protocols=[twin], catalog=catalog, now=_at("12:00"))
        ids = _ids(tl.all_actions)
        assert ids.index("morning_light") + 1 == ids.index("light_twin")

    def test_sort_actions_is_stable(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        reversed_ties = list(reversed(tl.all_actions))
        resorted = sort_actions(reversed_ties)
        eight = [a.protocol.id for a in resorted if a.scheduled_time == _at("08:00")]
        assert eight == ["journaling", "first_meal"]


class TestSegments:
    def test_partition(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        assert _ids(tl.morning) == [
            "morning_light",
            "morning_movement",
            "breathwork_morning",
            "first_meal",
            "journaling",
            "cold_exposure",
        ]
        assert _ids(tl.midday) == ["caffeine_cutoff"]
        assert _ids(tl.evening) == ["last_meal"]
        # dim_lights sits exactly on the wind-down edge (23:00 - 2h)
        assert _ids(tl.wind_down) == ["dim_lights", "evening_gratitude", "wind_down", "sleep_supplements"]

    def test_segments_cover_every_action_once(self, catalog):
        anchors = _anchors(training_time="17:00", has_training_today=True)
        tl = generate_timeline(anchors, catalog=catalog, now=_at("12:00"))
        bucketed = [a for actions in tl.segments.values() for a in actions]
        assert len(bucketed) == len(tl.all_actions)
        assert {a.id for a in bucketed} == {a.id for a in tl.all_actions}

    def test_boundary_equality(self, catalog):
        extras = [
            _protocol("at_morning_end", anchor="wake", offset=240),     # 11:00
            _protocol("at_evening_start", anchor="sleep", offset=-360),  # 17:00
        ]
        tl = generate_timeline(_anchors(), extra_protocols=extras, catalog=catalog, now=_at("12:00"))
        assert "at_morning_end" in _ids(tl.morning)
        assert "at_evening_start" in _ids(tl.evening)

    def test_priority_when_edges_overlap(self):
        # Late wake 13:00: morning runs to 17:00, which is also evening start.
        bounds = DayBoundaries.from_anchors(_anchors(wake_time_today=_at("13:00")), _at("12:00"))
        assert bounds.segment_for(_at("17:00")) == "evening"
        assert bounds.segment_for(_at("16:59")) == "morning"
        assert bounds.segment_for(_at("21:00")) == "wind_down"
        assert bounds.segment_for(_at("12:00")) == "morning"

    def test_midday(self):
        bounds = DayBoundaries.from_anchors(_anchors(), _at("12:00"))
        assert bounds.segment_for(_at("11:01")) == "midday"
        assert bounds.segment_for(_at("16:59")) == "midday"


# ---------------------------------------------------------------------------
# Current / next
# ---------------------------------------------------------------------------


class TestCurrentAndNext:
    def test_midday(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        assert tl.current_action.protocol.id == "cold_exposure"
        assert tl.next_action.protocol.id == "caffeine_cutoff"

    def test_window_end_is_inclusive_and_overlaps_pick_first(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("08:00"))
        # morning_light 07:00-08:00 is still active at exactly 08:00
        assert tl.find("morning_light").is_active
        assert tl.current_action.protocol.id == "morning_light"
        assert tl.next_action.protocol.id == "cold_exposure"

    def test_no_current_between_windows(self, catalog):
        # 14:00: caffeine cutoff (13:00) is over, last meal starts 20:00
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("14:00"))
        assert not any(a.is_active for a in tl.all_actions)
        assert tl.current_action is None
        assert tl.next_action.protocol.id == "last_meal"

    def test_point_in_time_action_active_only_at_its_minute(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("13:00"))
        assert tl.find("caffeine_cutoff").is_active
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("13:01"))
        assert not tl.find("caffeine_cutoff").is_active

    def test_next_skips_completed_and_skipped(self, catalog):
        tl = generate_timeline(
            _anchors(),
            catalog=catalog,
            now=_at("12:00"),
            completed_ids=["caffeine_cutoff"],
            skipped_ids=["last_meal_2024-03-15"],
        )
        assert tl.find("caffeine_cutoff").is_completed
        assert tl.find("last_meal").is_skipped
        assert tl.next_action.protocol.id == "dim_lights"

    def test_after_last_action(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("23:30"))
        assert tl.current_action is None
        assert tl.next_action is None


class TestStatusFlags:
    def test_missed_and_upcoming(self, catalog):
        tl = generate_timeline(
            _anchors(), catalog=catalog, now=_at("12:00"), completed_ids=["first_meal"]
        )
        assert tl.find("morning_light").is_missed
        assert not tl.find("first_meal").is_missed
        assert tl.find("wind_down").is_upcoming
        assert not tl.find("cold_exposure").is_upcoming

    def test_urgent_actions(self, catalog):
        tl = generate_timeline(_anchors(), catalog=catalog, now=_at("12:00"))
        assert _ids(tl.urgent_actions) == ["caffeine_cutoff", "last_meal", "dim_lights", "wind_down"]


# ---------------------------------------------------------------------------
# Sessions and unresolved anchors
# ---------------------------------------------------------------------------


class TestSessions:
    def test_session_is_merged_and_sorted(self, catalog):
        session = SessionRecord(
            id="s1", title="Strength", time_of_day="17:00", duration_minutes=75, mandatory=True
        )
        tl = generate_timeline(_anchors(), sessions=[session], catalog=catalog, now=_at("12:00"))
        action = tl.find("session_s1")
        assert action.id == "session_s1_2024-03-15"
        assert action.scheduled_time == _at("17:00")
        assert action.window_end == _at("18:15")
        assert action.relative_label == "Scheduled"
        assert action.protocol.domain == "training"
        assert action.protocol.priority == "critical"
        assert action.protocol.is_skippable is False
        assert action.is_session
        ids = _ids(tl.all_actions)
        assert ids.index("caffeine_cutoff") < ids.index("session_s1") < ids.index("last_meal")
        assert "session_s1" in _ids(tl.evening)

    def test_optional_session_defaults(self, catalog):
        session = SessionRecord(id="s2", time_of_day="18:00")
        tl = generate_timeline(_anchors(), sessions=[session], catalog=catalog, now=_at("12:00"))
        action = tl.find("session_s2")
        assert action.window_end == _at("19:00")
        assert action.protocol.priority == "high"
        assert action.protocol.is_skippable is True

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_uses_one_hour(self, catalog, duration):
        session = SessionRecord(id="s5", time_of_day="18:00", duration_minutes=duration)
        tl = generate_timeline(_anchors(), sessions=[session], catalog=catalog, now=_at("12:00"))
        action = tl.find("session_s5")
        assert action.protocol.duration_minutes == 60
        assert action.window_end == _at("19:00")

    @pytest.mark.parametrize("time_of_day", [None, "", "6pm", "25:00"])
    def test_untimed_session_is_excluded(self, catalog, time_of_day):
        session = SessionRecord(id="s3", time_of_day=time_of_day)
        tl = generate_timeline(_anchors(), sessions=[session], catalog=catalog, now=_at("12:00"))
        assert tl.find("session_s3") is None
        assert len(tl.all_actions) == 12

    def test_completed_session(self, catalog):
        session = SessionRecord(id="s4", time_of_day="09:00", completed=True)
        tl = generate_timeline(_anchors(), sessions=[session], catalog=catalog, now=_at("12:00"))
        action = tl.find("session_s4")
        assert action.is_completed
        assert not action.is_missed


class TestUnresolvedTraining:
    def test_training_anchor_without_time_falls_back_to_now(self, catalog):
        anchors = _anchors(has_training_today=True)
        tl = generate_timeline(anchors, catalog=catalog, now=_at("12:00"))
        pre = tl.find("pre_training_fuel")
        assert pre.scheduled_time == _at("10:30")
        assert pre.anchor_resolved is False
        assert tl.find("morning_light").anchor_resolved is True
        assert tl.unresolved_anchors == {"training"}

    def test_resolved_when_time_known(self, catalog):
        anchors = _anchors(training_time="17:00", has_training_today=True)
        tl = generate_timeline(anchors, catalog=catalog, now=_at("12:00"))
        assert tl.unresolved_anchors == set()


class TestDeterminism:
    def test_same_inputs_same_timeline(self, catalog):
        anchors = _anchors(training_time="17:00", has_training_today=True)
        session = SessionRecord(id="s1", time_of_day="17:00")
        first = generate_timeline(anchors, sessions=[session], catalog=catalog, now=_at("12:00"))
        second = generate_timeline(anchors, sessions=[session], catalog=catalog, now=_at("12:00"))
        assert first == second

    def test_inputs_not_mutated(self, catalog):
        anchors = _anchors()
        before = UserTimeAnchors(**vars(anchors))
        generate_timeline(anchors, catalog=catalog, now=_at("12:00"))
        assert anchors == before
