"""Tests for the SM-2 scheduler."""

import math
from datetime import timedelta

import pytest

from lingosrs.application import scheduler as sched
from lingosrs.application.scheduler import Sm2Scheduler, ease_delta, round_half_up
from lingosrs.domain.constants import DEFAULT_EASE_FACTOR, MIN_EASE_FACTOR
from lingosrs.domain.errors import InvalidQuality, InvalidState, SchedulingError
from lingosrs.domain.review.models import ReviewState


@pytest.fixture
def scheduler():
    return Sm2Scheduler()


def make_state(now, ease=2.5, interval=0, repetitions=0):
    return ReviewState(
        next_review_at=now, ease_factor=ease, interval=interval, repetitions=repetitions
    )


class TestConcreteScenarios:
    def test_first_success_good(self, scheduler, fresh_state, now):
        result = scheduler.schedule(fresh_state, 4, now)

        assert result.interval == 1
        assert result.repetitions == 1
        assert result.ease_factor == pytest.approx(2.5)

    def test_first_success_perfect(self, scheduler, fresh_state, now):
        result = scheduler.schedule(fresh_state, 5, now)

        assert result.interval == 1
        assert result.repetitions == 1
        assert result.ease_factor == pytest.approx(2.6)

    def test_second_success_jumps_to_six(self, scheduler, fresh_state, now):
        first = scheduler.schedule(fresh_state, 5, now)
        second = scheduler.schedule(first, 5, now + timedelta(days=1))

        assert second.interval == 6
        assert second.repetitions == 2
        assert second.ease_factor == pytest.approx(2.7)

    def test_lapse_resets_streak_and_lowers_ease(self, scheduler, now):
        state = make_state(now, ease=2.7, interval=6, repetitions=2)

        result = scheduler.schedule(state, 1, now)

        assert result.interval == 0
        assert result.repetitions == 0
        assert result.ease_factor == pytest.approx(2.16)
        assert result.next_review_at == now

    def test_repeated_blackouts_stop_at_floor(self, scheduler, fresh_state, now):
        state = fresh_state
        for day in range(10):
            state = scheduler.schedule(state, 0, now + timedelta(days=day))
            assert state.ease_factor >= MIN_EASE_FACTOR

        assert state.ease_factor == MIN_EASE_FACTOR

    def test_third_success_multiplies_by_pre_update_ease(self, scheduler, now):
        state = make_state(now, ease=2.5, interval=6, repetitions=2)

        result = scheduler.schedule(state, 3, now)

        # 6 * 2.5 = 15, ease only drops afterwards
        assert result.interval == 15
        assert result.repetitions == 3
        assert result.ease_factor == pytest.approx(2.36)

    def test_interval_ties_round_half_up(self, scheduler, now):
        state = make_state(now, ease=2.5, interval=5, repetitions=2)

        result = scheduler.schedule(state, 4, now)

        # 12.5 rounds up, not to the even neighbour
        assert result.interval == 13

    def test_ease_has_no_upper_bound(self, scheduler, now):
        state = make_state(now, ease=4.0, interval=30, repetitions=5)

        result = scheduler.schedule(state, 5, now)

        assert result.ease_factor == pytest.approx(4.1)
        assert result.interval == 120


class TestInvariants:
    STATES = [
        (2.5, 0, 0),
        (2.5, 1, 1),
        (2.7, 6, 2),
        (1.3, 3, 4),
        (1.31, 40, 7),
        (3.2, 200, 12),
    ]

    @pytest.mark.parametrize("quality", range(6))
    @pytest.mark.parametrize("ease,interval,repetitions", STATES)
    def test_output_invariants(self, scheduler, now, quality, ease, interval, repetitions):
        state = make_state(now, ease=ease, interval=interval, repetitions=repetitions)

        result = scheduler.schedule(state, quality, now)

        assert result.ease_factor >= MIN_EASE_FACTOR
        assert result.interval >= 0
        assert result.next_review_at == now + timedelta(days=result.interval)
        assert result.last_reviewed_at == now
        if quality < 3:
            assert result.interval == 0
            assert result.repetitions == 0
        else:
            assert result.interval >= 1
            assert result.repetitions == repetitions + 1

    def test_intervals_grow_under_perfect_recall(self, scheduler, fresh_state, now):
        state = fresh_state
        intervals = []
        for _ in range(8):
            state = scheduler.schedule(state, 5, state.next_review_at)
            intervals.append(state.interval)

        assert intervals[:3] == [1, 6, 16]
        assert intervals == sorted(intervals)

    def test_input_is_not_mutated(self, scheduler, now):
        state = make_state(now, ease=2.7, interval=6, repetitions=2)
        snapshot = make_state(now, ease=2.7, interval=6, repetitions=2)

        result = scheduler.schedule(state, 5, now + timedelta(days=6))

        assert state == snapshot
        assert result is not state

    def test_deterministic(self, scheduler, now):
        state = make_state(now, ease=2.36, interval=15, repetitions=3)

        assert scheduler.schedule(state, 4, now) == scheduler.schedule(state, 4, now)
        assert Sm2Scheduler().schedule(state, 4, now) == scheduler.schedule(state, 4, now)

    def test_naive_timestamps_are_scheduled_as_given(self, scheduler):
        from datetime import datetime

        naive = datetime(2024, 1, 31, 12, 0)
        result = scheduler.schedule(ReviewState(next_review_at=naive), 4, naive)

        assert result.next_review_at == datetime(2024, 2, 1, 12, 0)


class TestValidation:
    @pytest.mark.parametrize("quality", [-1, 6, 100, 2.5, 3.0, True, False, "4", None])
    def test_invalid_quality(self, scheduler, fresh_state, now, quality):
        with pytest.raises(InvalidQuality) as exc_info:
            scheduler.schedule(fresh_state, quality, now)
        assert exc_info.value.quality == quality

    @pytest.mark.parametrize(
        "ease,interval,repetitions,field",
        [
            (1.29, 0, 0, "ease_factor"),
            (math.nan, 6, 2, "ease_factor"),
            (2.5, -1, 0, "interval"),
            (2.5, 0, -1, "repetitions"),
        ],
    )
    def test_invalid_state(self, scheduler, now, ease, interval, repetitions, field):
        state = make_state(now, ease=ease, interval=interval, repetitions=repetitions)

        with pytest.raises(InvalidState) as exc_info:
            scheduler.schedule(state, 4, now)
        assert exc_info.value.field == field

    def test_interval_past_calendar_end(self, scheduler, now):
        state = make_state(now, ease=2.5, interval=2_000_000, repetitions=5)

        with pytest.raises(InvalidState) as exc_info:
            scheduler.schedule(state, 5, now)
        assert exc_info.value.field == "interval"

    def test_invalid_state_rejected_by_reset(self, scheduler, now):
        with pytest.raises(InvalidState):
            scheduler.reset(make_state(now, ease=1.0), now)

    def test_errors_share_base_class(self):
        assert issubclass(InvalidQuality, SchedulingError)
        assert issubclass(InvalidState, SchedulingError)


class TestReset:
    def test_reset_restores_defaults(self, scheduler, now):
        state = make_state(now - timedelta(days=30), ease=1.9, interval=40, repetitions=6)

        result = scheduler.reset(state, now)

        assert result.ease_factor == DEFAULT_EASE_FACTOR
        assert result.interval == 0
        assert result.repetitions == 0
        assert result.next_review_at == now
        assert result.last_reviewed_at == now

    def test_reset_is_idempotent(self, scheduler, now):
        state = make_state(now, ease=1.9, interval=40, repetitions=6)

        once = scheduler.reset(state, now)
        twice = scheduler.reset(once, now)

        assert once == twice


class TestHelpers:
    def test_new_state_is_due_now(self, scheduler, now):
        state = scheduler.new_state(now)

        assert state.ease_factor == DEFAULT_EASE_FACTOR
        assert state.interval == 0
        assert state.repetitions == 0
        assert state.next_review_at == now
        assert state.last_reviewed_at is None
        assert state.is_due(now)

    @pytest.mark.parametrize(
        "quality,expected",
        [(5, 0.1), (4, 0.0), (3, -0.14), (2, -0.32), (1, -0.54), (0, -0.8)],
    )
    def test_ease_delta(self, quality, expected):
        assert ease_delta(quality) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "value,expected", [(0.0, 0), (0.5, 1), (1.49, 1), (2.5, 3), (16.2, 16), (130.5, 131)]
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_module_level_functions(self, fresh_state, now):
        assert sched.new_state(now) == fresh_state
        assert sched.schedule(fresh_state, 4, now).interval == 1
        assert sched.reset(sched.schedule(fresh_state, 5, now), now).ease_factor == 2.5
