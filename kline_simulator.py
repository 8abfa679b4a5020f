"""
Life K-line Simulation Engine

This is the core logic that turns a scripted life into a candlestick chart.
Each simulated year becomes one candle: the open is last year's close, the
close is pushed around by market noise, scripted life events and a pull
back toward the center score.
"""

import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from config import DEFAULT_PARAMS


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class LifeEvent:
    """
    One scripted occurrence in a life.

    Created by the script source, read-only afterwards.
    """
    age: int                 # Simulated year the event fires
    content: str             # Headline shown on the ticker
    impact: float            # Nominally -10..10, not enforced here
    category: str = 'RANDOM' # Carried through, never changes the math

    @property
    def sentiment(self) -> str:
        """How the ticker labels this event."""
        if self.impact > 0:
            return 'bullish'
        if self.impact < 0:
            return 'bearish'
        return 'neutral'

    def to_dict(self) -> dict:
        return {
            'age': self.age,
            'content': self.content,
            'impact': self.impact,
            'category': self.category,
        }


@dataclass(frozen=True)
class Candle:
    """One simulated year: open/high/low/close plus the events that fired."""
    age: int
    open: float
    close: float
    high: float
    low: float
    events: Tuple[LifeEvent, ...] = ()
    trend: str = 'flat'      # 'up', 'down' or 'flat'

    @property
    def change(self) -> float:
        """Close minus open - what the header shows as the current trend."""
        return self.close - self.open

    def to_dict(self) -> dict:
        return {
            'age': self.age,
            'open': self.open,
            'close': self.close,
            'high': self.high,
            'low': self.low,
            'events': [e.to_dict() for e in self.events],
            'trend': self.trend,
        }


@dataclass
class SimulationResult:
    """Holds the results of one full life."""
    candles: List[Candle]
    events_log: List[LifeEvent]
    final_score: float
    peak_score: float
    peak_age: int
    trough_score: float
    trough_age: int
    up_years: int = 0
    down_years: int = 0
    flat_years: int = 0

    @property
    def ages(self) -> List[int]:
        return [c.age for c in self.candles]

    @property
    def closes(self) -> List[float]:
        return [c.close for c in self.candles]


class PathIntegrityError(ValueError):
    """Raised when a candle would break the append-only life path."""


class InvalidInputError(ValueError):
    """Raised when a year's inputs are not finite numbers (NaN or infinite)."""


# =============================================================================
# EVENT HELPERS
# =============================================================================

def get_events_for_age(age: int, events: Sequence[LifeEvent]) -> Tuple[LifeEvent, ...]:
    """Events scheduled for a given age, in script order."""
    return tuple(e for e in events if e.age == age)


def get_event_impact_for_age(
    age: int,
    events: Sequence[LifeEvent],
    params: Optional[dict] = None
) -> float:
    """Total amplified impact for a given age (could be multiple events)."""
    params = params or DEFAULT_PARAMS
    return sum(e.impact * params['impact_multiplier'] for e in events if e.age == age)


# =============================================================================
# NUMERIC POLICY
# =============================================================================

def clamp(value: float, low: float, high: float) -> float:
    """Clamp value between low and high bounds."""
    return max(low, min(high, value))


def mean_reversion(previous_close: float, params: Optional[dict] = None) -> float:
    """
    Pull toward the center score, proportional to the distance from it.

    Above the center the result is negative, below it positive.
    """
    params = params or DEFAULT_PARAMS
    return (previous_close - params['center_score']) * -params['mean_reversion_strength']


def market_noise(rng=random, params: Optional[dict] = None) -> float:
    """One uniform draw of yearly noise, symmetric around zero."""
    params = params or DEFAULT_PARAMS
    return (rng.random() - 0.5) * params['volatility_range']


def classify_trend(open_value: float, close_value: float) -> str:
    if close_value > open_value:
        return 'up'
    if close_value < open_value:
        return 'down'
    return 'flat'


# =============================================================================
# CORE SIMULATION LOGIC
# =============================================================================

def next_candle(
    age: int,
    previous_close: float,
    events: Sequence[LifeEvent],
    rng=random,
    params: Optional[dict] = None
) -> Candle:
    """
    Simulate one year of a life.

    The order matters here, it fixes which random draw feeds which term:
    1. Pick the scripted events for this age
    2. Draw market noise (first draw)
    3. Add amplified event impacts and the mean-reversion pull
    4. Clamp the close into the value band (NaN or infinite inputs raise
       InvalidInputError instead of being clamped)
    5. Draw the upper and lower wicks (second and third draws)

    Args:
        age: The year being simulated (caller keeps ages consecutive)
        previous_close: Last year's close, or the seed score for the first year
        events: The whole life script, not pre-filtered
        rng: Anything with a random() method returning floats in [0, 1)
        params: Model parameters (defaults to DEFAULT_PARAMS)

    Returns:
        The new Candle, with open = previous_close
    """
    params = params or DEFAULT_PARAMS

    year_events = get_events_for_age(age, events)

    volatility = market_noise(rng, params)
    event_impact = get_event_impact_for_age(age, year_events, params)
    reversion = mean_reversion(previous_close, params)

    raw_close = previous_close + volatility + event_impact + reversion
    if not math.isfinite(raw_close):
        raise InvalidInputError(
            f"Age {age}: non-finite close from previous_close={previous_close!r}, "
            f"event_impact={event_impact!r}"
        )

    close = clamp(
        raw_close,
        params['min_score'],
        params['max_score']
    )

    # Wicks are not clamped: they show how far the year swung intra-period
    body = abs(previous_close - close)
    reach = body * params['wick_body_factor'] + params['wick_base']
    high = max(previous_close, close) + rng.random() * reach
    low = min(previous_close, close) - rng.random() * reach

    return Candle(
        age=age,
        open=previous_close,
        close=close,
        high=high,
        low=low,
        events=year_events,
        trend=classify_trend(previous_close, close)
    )


class LifePath:
    """
    The running series of candles for one life.

    Append-only: a candle must continue the previous one (next age, open
    equal to the previous close). reset() throws the whole life away.
    """

    def __init__(self, params: Optional[dict] = None):
        self.params = params or DEFAULT_PARAMS
        self._candles: List[Candle] = []
        self._events_log: List[LifeEvent] = []

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self):
        return iter(self._candles)

    @property
    def candles(self) -> Tuple[Candle, ...]:
        return tuple(self._candles)

    @property
    def events_log(self) -> Tuple[LifeEvent, ...]:
        return tuple(self._events_log)

    @property
    def latest_event(self) -> Optional[LifeEvent]:
        return self._events_log[-1] if self._events_log else None

    @property
    def current_score(self) -> float:
        return self._candles[-1].close if self._candles else self.params['seed_score']

    @property
    def current_trend(self) -> float:
        return self._candles[-1].change if self._candles else 0.0

    @property
    def current_age(self) -> Optional[int]:
        return self._candles[-1].age if self._candles else None

    @property
    def next_age(self) -> int:
        if not self._candles:
            return self.params['start_age']
        return self._candles[-1].age + 1

    @property
    def is_finished(self) -> bool:
        return self.next_age > self.params['end_age']

    def append(self, candle: Candle) -> None:
        if candle.age != self.next_age:
            raise PathIntegrityError(
                f"Expected candle for age {self.next_age}, got age {candle.age}"
            )
        if self._candles and candle.open != self._candles[-1].close:
            raise PathIntegrityError(
                f"Candle at age {candle.age} opens at {candle.open}, "
                f"previous close was {self._candles[-1].close}"
            )
        self._candles.append(candle)
        self._events_log.extend(candle.events)

    def step(self, events: Sequence[LifeEvent], rng=random) -> Candle:
        """Generate and append the next year's candle."""
        candle = next_candle(self.next_age, self.current_score, events, rng, self.params)
        self.append(candle)
        return candle

    def reset(self) -> None:
        self._candles = []
        self._events_log = []

    def to_result(self) -> SimulationResult:
        candles = list(self._candles)
        if not candles:
            seed = self.params['seed_score']
            start = self.params['start_age']
            return SimulationResult([], [], seed, seed, start, seed, start)

        peak = max(candles, key=lambda c: c.close)
        trough = min(candles, key=lambda c: c.close)
        return SimulationResult(
            candles=candles,
            events_log=list(self._events_log),
            final_score=candles[-1].close,
            peak_score=peak.close,
            peak_age=peak.age,
            trough_score=trough.close,
            trough_age=trough.age,
            up_years=sum(1 for c in candles if c.trend == 'up'),
            down_years=sum(1 for c in candles if c.trend == 'down'),
            flat_years=sum(1 for c in candles if c.trend == 'flat'),
        )


def run_simulation(
    events: Sequence[LifeEvent],
    params: Optional[dict] = None,
    rng=random
) -> SimulationResult:
    """
    Run a full life from start_age to end_age in one synchronous pass.

    Every year needs the previous close, so this is strictly sequential.

    Args:
        events: The life script
        params: Model parameters (defaults to DEFAULT_PARAMS)
        rng: Random source, pass random.Random(seed) for a repeatable life

    Returns:
        SimulationResult with every candle and the event log
    """
    path = LifePath(params)
    while not path.is_finished:
        path.step(events, rng)
    return path.to_result()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def format_score(score: float) -> str:
    """Format a score the way the header shows it."""
    return f"{score:.2f}"


def format_change(change: float) -> str:
    """Arrow plus magnitude, e.g. '▲ 3.10'."""
    arrow = '▲' if change > 0 else '▼' if change < 0 else '-'
    return f"{arrow} {abs(change):.2f}"


# =============================================================================
# QUICK TEST
# =============================================================================

if __name__ == "__main__":
    from config import FALLBACK_EVENTS

    script = [LifeEvent(**e) for e in FALLBACK_EVENTS]
    result = run_simulation(script, rng=random.Random(42))

    print("=== Basic Life Simulation (fallback script, seed 42) ===\n")
    print(f"Candles:     {len(result.candles)}")
    print(f"Final score: {format_score(result.final_score)}")
    print(f"Peak:        {format_score(result.peak_score)} at age {result.peak_age}")
    print(f"Trough:      {format_score(result.trough_score)} at age {result.trough_age}")

    print("\nEvent years:")
    for candle in result.candles:
        if candle.events:
            print(f"  Age {candle.age:>2}: {format_score(candle.close):>7} {format_change(candle.change):>9}"
                  f"  ({'; '.join(e.content for e in candle.events)})")
