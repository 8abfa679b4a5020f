#!/usr/bin/env python3
"""
Life K-line Runner

This is the main entry point that ties everything together:
- Builds a profile and fetches its life script from life_script.py
- Plays the life back one year per tick, like the chart animation
- Prints the chart, the news ticker and a many-lives comparison

Run with: python run_simulation.py --name Alice --birth-date 1990-05-01
"""

import argparse
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from config import DEFAULT_PARAMS
from kline_simulator import (
    Candle, LifeEvent, LifePath, SimulationResult, format_change,
    format_score, next_candle, run_simulation
)
from life_script import ScriptGenerator, UserProfile, generate_life_script


# =============================================================================
# TICKING DRIVER
# =============================================================================

IDLE = 'IDLE'
GENERATING = 'GENERATING'
SIMULATING = 'SIMULATING'
FINISHED = 'FINISHED'


class LifeTicker:
    """
    Plays a life back one simulated year per tick.

    The chart and the ticker only ever see candles in increasing age order.
    stop() takes effect at the next tick boundary and keeps what was already
    produced; reset() throws the whole life away.
    """

    def __init__(
        self,
        params: Optional[dict] = None,
        rng=random,
        generator: Optional[ScriptGenerator] = None
    ):
        self.params = params or DEFAULT_PARAMS
        self.rng = rng
        self.generator = generator
        self.state = IDLE
        self.profile: Optional[UserProfile] = None
        self.script: List[LifeEvent] = []
        self.path = LifePath(self.params)
        self._stop = threading.Event()
        # Guards path/state so a reset never lands between a step and its append
        self._lock = threading.RLock()
        self._generation = 0

    def start(self, profile: UserProfile) -> List[LifeEvent]:
        """Fetch the script and get ready to simulate from the seed score."""
        with self._lock:
            self._generation += 1
            self.state = GENERATING
            self.profile = profile
            self.script = generate_life_script(profile, self.generator)
            self.path.reset()
            self._stop.clear()
            self.state = SIMULATING
        logger.info(f"Simulating life of {profile.name} with {len(self.script)} scripted events")
        return self.script

    def tick(self) -> Optional[Candle]:
        """Advance one year. Returns None once the life is over or was reset."""
        with self._lock:
            if self.state != SIMULATING:
                return None
            if self.path.is_finished:
                self.state = FINISHED
                return None

            generation = self._generation
            candle = next_candle(
                self.path.next_age, self.path.current_score, self.script, self.rng, self.params
            )
            # A reset or restart during the draw discards this candle
            if generation != self._generation or self.state != SIMULATING:
                return None

            self.path.append(candle)
            if self.path.is_finished:
                self.state = FINISHED
                logger.info(f"Life finished at age {candle.age}, final score {format_score(candle.close)}")
            return candle

    def run(
        self,
        on_candle: Optional[Callable[[Candle], None]] = None,
        sleep: Callable[[float], None] = time.sleep
    ) -> SimulationResult:
        """
        Tick until the life is finished or stop() is called.

        Args:
            on_candle: Called with each new candle, before the next tick
            sleep: Pause between ticks (pass a no-op for batch use)
        """
        while self.state == SIMULATING and not self._stop.is_set():
            candle = self.tick()
            if candle is None:
                break
            if on_candle is not None:
                on_candle(candle)
            if self.state == SIMULATING:
                sleep(self.params['tick_seconds'])

        if self._stop.is_set() and self.state == SIMULATING:
            logger.info(f"Playback stopped after {len(self.path)} years")
        return self.path.to_result()

    def stop(self) -> None:
        self._stop.set()

    def reset(self) -> None:
        self._stop.set()
        with self._lock:
            self._generation += 1
            self.path.reset()
            self.script = []
            self.profile = None
            self.state = IDLE


# =============================================================================
# CONSOLE OUTPUT
# =============================================================================

def print_candle_row(candle: Candle, params: Optional[dict] = None, width: int = 48):
    """One row of the text chart: a body of '#' between open and close, wicks as '-'."""
    params = params or DEFAULT_PARAMS
    lo_bound, hi_bound = params['min_score'], params['max_score']
    # A degenerate band draws every candle in the first column
    scale = (width - 1) / (hi_bound - lo_bound) if hi_bound > lo_bound else 0.0

    def col(value: float) -> int:
        return int(round((min(max(value, lo_bound), hi_bound) - lo_bound) * scale))

    row = [' '] * width
    for i in range(col(candle.low), col(candle.high) + 1):
        row[i] = '-'
    for i in range(col(min(candle.open, candle.close)), col(max(candle.open, candle.close)) + 1):
        row[i] = '#' if candle.trend == 'up' else '='

    marker = '*' if candle.events else ' '
    print(f"{candle.age:>3} {marker}|{''.join(row)}| {format_score(candle.close):>7} {format_change(candle.change):>9}")


def print_life_chart(result: SimulationResult, params: Optional[dict] = None):
    print("\n" + "=" * 72)
    print("LIFE CHART  (# up year, = down year, * event year)")
    print("=" * 72)
    for candle in result.candles:
        print_candle_row(candle, params)


def print_ticker(events: Sequence[LifeEvent]):
    """The news feed: every event that fired, oldest first."""
    print("\n" + "=" * 72)
    print("MARKET NEWS / LIFE EVENTS")
    print("=" * 72)
    if not events:
        print("  Waiting for market open...")
        return
    for e in events:
        print(f"  AGE {e.age:>2}  {e.sentiment:<8} {e.content}")
    print(f"\nLatest breaking news: {events[-1].content}")


def print_life_summary(result: SimulationResult):
    print("\n" + "=" * 72)
    print("SUMMARY")
    print("=" * 72)
    last_change = result.candles[-1].change if result.candles else 0.0
    print(f"Final score:  {format_score(result.final_score)} ({format_change(last_change)})")
    print(f"Peak:         {format_score(result.peak_score)} at age {result.peak_age}")
    print(f"Trough:       {format_score(result.trough_score)} at age {result.trough_age}")
    print(f"Up / down / flat years: {result.up_years} / {result.down_years} / {result.flat_years}")


# =============================================================================
# MANY LIVES
# =============================================================================

@dataclass
class ManyLivesSummary:
    """Summary statistics of the same script lived many times."""
    num_lives: int
    mean_final: float
    median_final: float
    percentile_5: float
    percentile_95: float
    best_life: float
    worst_life: float


def percentile(data: List[float], p: float) -> float:
    """Calculate percentile from sorted data."""
    idx = int(len(data) * p / 100)
    return data[min(idx, len(data) - 1)]


def run_many_lives(
    events: Sequence[LifeEvent],
    num_lives: int = 1000,
    params: Optional[dict] = None,
    rng=random
) -> Tuple[List[SimulationResult], ManyLivesSummary]:
    """Live the same script many times to see how much is fate and how much is noise."""
    if num_lives < 1:
        raise ValueError("num_lives must be at least 1")

    results = [run_simulation(events, params, rng) for _ in range(num_lives)]
    finals = sorted(r.final_score for r in results)

    summary = ManyLivesSummary(
        num_lives=num_lives,
        mean_final=sum(finals) / num_lives,
        median_final=percentile(finals, 50),
        percentile_5=percentile(finals, 5),
        percentile_95=percentile(finals, 95),
        best_life=finals[-1],
        worst_life=finals[0],
    )
    return results, summary


def print_many_lives_summary(summary: ManyLivesSummary):
    print("\n" + "=" * 72)
    print(f"SAME SCRIPT, {summary.num_lives:,} LIVES")
    print("=" * 72)
    print(f"  5th percentile:  {format_score(summary.percentile_5):>7}  (unlucky)")
    print(f"  50th percentile: {format_score(summary.median_final):>7}  (median)")
    print(f"  95th percentile: {format_score(summary.percentile_95):>7}  (lucky)")
    print(f"  Mean:            {format_score(summary.mean_final):>7}")
    print(f"  Range:           {format_score(summary.worst_life)} .. {format_score(summary.best_life)}")


# =============================================================================
# MAIN
# =============================================================================

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simulate a life as a candlestick chart")
    parser.add_argument('--name', default='Anonymous')
    parser.add_argument('--birth-date', default='2000-01-01')
    parser.add_argument('--gender', default='MALE', choices=['MALE', 'FEMALE', 'OTHER'])
    parser.add_argument('--seed', type=int, default=None, help='Seed for a repeatable life')
    parser.add_argument('--live', action='store_true', help='Play back one year per tick')
    parser.add_argument('--lives', type=int, default=0, help='Also run the script this many times')
    parser.add_argument('--export', default=None, help='Write the life to this JSON file')
    return parser


def main(argv: Optional[List[str]] = None):
    """Simulate one life and print it."""
    args = build_arg_parser().parse_args(argv)
    params = DEFAULT_PARAMS
    rng = random.Random(args.seed)

    profile = UserProfile.from_dict({
        'name': args.name,
        'birth_date': args.birth_date,
        'gender': args.gender,
    })

    print("\n" + "=" * 72)
    print(f"LIFE K-LINE: {profile.name} (born {profile.birth_date})")
    print("=" * 72)

    ticker = LifeTicker(params, rng)
    script = ticker.start(profile)

    if args.live:
        result = ticker.run(on_candle=lambda c: print_candle_row(c, params))
    else:
        result = ticker.run(sleep=lambda _: None)
        print_life_chart(result, params)

    print_ticker(result.events_log)
    print_life_summary(result)

    if args.lives > 0:
        _, summary = run_many_lives(script, args.lives, params, rng)
        print_many_lives_summary(summary)

    if args.export:
        from export_data import export_to_json
        export_to_json(profile, script, result, args.export, params)

    print()


if __name__ == "__main__":
    main()
