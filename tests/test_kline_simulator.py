import random

import pytest

from config import DEFAULT_PARAMS
from kline_simulator import (
    Candle, InvalidInputError, LifeEvent, LifePath, PathIntegrityError,
    classify_trend, clamp, get_event_impact_for_age, get_events_for_age,
    mean_reversion, next_candle, run_simulation
)


# ---------------------------------------------------------------------------
# numeric policy
# ---------------------------------------------------------------------------

def test_clamp_bounds():
    assert clamp(-3.0, 0.0, 120.0) == 0.0
    assert clamp(130.0, 0.0, 120.0) == 120.0
    assert clamp(42.5, 0.0, 120.0) == 42.5


def test_mean_reversion_pulls_toward_center():
    assert mean_reversion(80.0) == pytest.approx(-1.5)
    assert mean_reversion(20.0) == pytest.approx(1.5)
    assert mean_reversion(50.0) == 0.0


def test_classify_trend_all_three_cases():
    assert classify_trend(50.0, 51.0) == 'up'
    assert classify_trend(50.0, 49.0) == 'down'
    assert classify_trend(50.0, 50.0) == 'flat'


def test_events_for_age_keeps_script_order(script):
    year = get_events_for_age(30, script)
    assert [e.content for e in year] == ["promotion", "back pain"]
    assert get_events_for_age(31, script) == ()


def test_same_age_impacts_sum_independently(script):
    # (4 * 2) + (-1 * 2)
    assert get_event_impact_for_age(30, script) == 6


# ---------------------------------------------------------------------------
# next_candle
# ---------------------------------------------------------------------------

def test_no_event_no_noise_stays_at_seed(calm_rng):
    candle = next_candle(1, 50.0, [], calm_rng)

    assert candle.close == 50.0
    assert candle.open == 50.0
    assert candle.high == 50.0
    assert candle.low == 50.0
    assert candle.events == ()
    assert candle.trend == 'flat'


def test_single_event_moves_close(calm_rng):
    events = [LifeEvent(age=5, content="jackpot", impact=10)]
    candle = next_candle(5, 50.0, events, calm_rng)

    assert candle.close == pytest.approx(70.0)
    assert candle.trend == 'up'
    assert candle.events == tuple(events)


def test_event_at_other_age_is_ignored(calm_rng):
    events = [LifeEvent(age=6, content="later", impact=10)]
    candle = next_candle(5, 50.0, events, calm_rng)

    assert candle.close == 50.0
    assert candle.events == ()


def test_noise_range_is_plus_minus_five(fixed_random):
    low = next_candle(1, 50.0, [], fixed_random(0.0, 0.0, 0.0))
    high = next_candle(1, 50.0, [], fixed_random(0.99, 0.0, 0.0))

    assert low.close == pytest.approx(45.0)
    assert high.close == pytest.approx(54.9)


def test_reversion_applies_from_previous_close(calm_rng):
    candle = next_candle(10, 80.0, [], calm_rng)
    assert candle.close == pytest.approx(78.5)
    assert candle.trend == 'down'


def test_close_clamped_to_upper_bound(fixed_random):
    events = [LifeEvent(age=2, content="windfall", impact=10) for _ in range(5)]
    candle = next_candle(2, 110.0, events, fixed_random(0.99, 0.0, 0.0))
    assert candle.close == 120.0


def test_close_clamped_to_lower_bound(fixed_random):
    events = [LifeEvent(age=2, content="disaster", impact=-10)]
    candle = next_candle(2, 5.0, events, fixed_random(0.0, 0.0, 0.0))
    assert candle.close == 0.0


def test_wicks_scale_with_body(fixed_random):
    events = [LifeEvent(age=1, content="boom", impact=5)]
    # close 60, body 10 -> reach 10 * 0.5 + 2 = 7
    candle = next_candle(1, 50.0, events, fixed_random(0.5, 1.0, 0.5))

    assert candle.close == pytest.approx(60.0)
    assert candle.high == pytest.approx(67.0)
    assert candle.low == pytest.approx(46.5)


def test_wicks_are_not_clamped(fixed_random):
    events = [LifeEvent(age=1, content="boom", impact=10)]
    candle = next_candle(1, 118.0, events, fixed_random(0.5, 0.9, 0.0))

    assert candle.close == 120.0
    assert candle.high > 120.0


def test_out_of_range_previous_close_still_clamps(calm_rng):
    candle = next_candle(4, 500.0, [], calm_rng)
    assert candle.close == 120.0
    assert candle.open == 500.0


def test_out_of_range_impact_is_used_as_is(calm_rng):
    events = [LifeEvent(age=1, content="off the scale", impact=15)]
    candle = next_candle(1, 50.0, events, calm_rng)
    assert candle.close == pytest.approx(80.0)


@pytest.mark.parametrize("impact", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_impact_is_rejected(calm_rng, impact):
    events = [LifeEvent(age=1, content="broken", impact=impact)]
    with pytest.raises(InvalidInputError):
        next_candle(1, 50.0, events, calm_rng)


def test_non_finite_previous_close_is_rejected(calm_rng):
    with pytest.raises(InvalidInputError):
        next_candle(1, float("nan"), [], calm_rng)


def test_non_finite_impact_at_other_age_is_harmless(calm_rng):
    events = [LifeEvent(age=9, content="broken", impact=float("nan"))]
    assert next_candle(1, 50.0, events, calm_rng).close == 50.0


def test_category_does_not_change_math(calm_rng):
    career = [LifeEvent(age=1, content="x", impact=3, category='CAREER')]
    love = [LifeEvent(age=1, content="x", impact=3, category='LOVE')]
    assert next_candle(1, 50.0, career, calm_rng).close == next_candle(1, 50.0, love, calm_rng).close


def test_custom_params_change_the_band(calm_rng):
    params = dict(DEFAULT_PARAMS, max_score=60.0)
    events = [LifeEvent(age=1, content="boom", impact=10)]
    assert next_candle(1, 50.0, events, calm_rng, params).close == 60.0


@pytest.mark.parametrize("seed", range(20))
def test_random_candles_respect_invariants(seed, script):
    rng = random.Random(seed)
    for previous_close in (0.0, 12.5, 50.0, 97.0, 120.0):
        for age in (3, 18, 30, 50):
            c = next_candle(age, previous_close, script, rng)
            assert 0.0 <= c.close <= 120.0
            assert c.low <= min(c.open, c.close)
            assert c.high >= max(c.open, c.close)
            assert c.trend == classify_trend(c.open, c.close)


# ---------------------------------------------------------------------------
# LifePath / run_simulation
# ---------------------------------------------------------------------------

def test_full_life_has_81_consecutive_candles(script):
    result = run_simulation(script, rng=random.Random(1))

    assert len(result.candles) == 81
    assert result.ages == list(range(0, 81))
    assert result.candles[0].open == DEFAULT_PARAMS['seed_score']
    for prev, cur in zip(result.candles, result.candles[1:]):
        assert cur.open == prev.close


def test_full_life_logs_every_event_in_order(script):
    result = run_simulation(script, rng=random.Random(2))

    assert [e.content for e in result.events_log] == [
        "first words", "exam stress", "promotion", "back pain"
    ]
    assert result.up_years + result.down_years + result.flat_years == 81


def test_same_seed_same_life(script):
    a = run_simulation(script, rng=random.Random(99))
    b = run_simulation(script, rng=random.Random(99))
    assert a.closes == b.closes


def test_empty_script_is_fine():
    result = run_simulation([], rng=random.Random(3))
    assert len(result.candles) == 81
    assert result.events_log == []


def test_path_rejects_skipped_age(calm_rng):
    path = LifePath()
    path.step([], calm_rng)
    with pytest.raises(PathIntegrityError):
        path.append(Candle(age=5, open=50.0, close=50.0, high=50.0, low=50.0))


def test_path_rejects_broken_open(calm_rng):
    path = LifePath()
    path.step([], calm_rng)
    with pytest.raises(PathIntegrityError):
        path.append(Candle(age=1, open=12.0, close=50.0, high=50.0, low=12.0))


def test_path_derived_state(fixed_random):
    path = LifePath()
    assert path.current_score == 50.0
    assert path.current_trend == 0.0
    assert path.latest_event is None

    events = [LifeEvent(age=0, content="born", impact=1)]
    path.step(events, fixed_random(0.5, 0.0, 0.0))

    assert path.current_age == 0
    assert path.current_score == pytest.approx(52.0)
    assert path.current_trend == pytest.approx(2.0)
    assert path.latest_event.content == "born"


def test_path_reset_starts_over(calm_rng):
    path = LifePath()
    for _ in range(5):
        path.step([], calm_rng)
    path.reset()

    assert len(path) == 0
    assert path.next_age == 0
    assert path.current_score == 50.0
