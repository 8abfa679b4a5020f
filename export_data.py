#!/usr/bin/env python3
"""
Export a simulated life to JSON for visualization.

Exports:
- The profile and the model parameters
- Every candle (open/high/low/close, trend, events)
- The news ticker feed
- Summary statistics (final score, peak, trough, trend counts)
"""

import json
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from config import DEFAULT_PARAMS
from kline_simulator import LifeEvent, SimulationResult, run_simulation
from life_script import UserProfile, fallback_script


# =============================================================================
# TICKER FEED
# =============================================================================

def build_ticker(events: Sequence[LifeEvent]) -> List[Dict[str, Any]]:
    """News items in the order they fired."""
    return [
        {
            "age": e.age,
            "content": e.content,
            "sentiment": e.sentiment,
        }
        for e in events
    ]


def summarize(result: SimulationResult) -> Dict[str, Any]:
    """Header numbers: current score and the change of the last year."""
    last = result.candles[-1] if result.candles else None
    return {
        "final_score": result.final_score,
        "final_change": last.change if last else 0.0,
        "final_age": last.age if last else None,
        "peak_score": result.peak_score,
        "peak_age": result.peak_age,
        "trough_score": result.trough_score,
        "trough_age": result.trough_age,
        "up_years": result.up_years,
        "down_years": result.down_years,
        "flat_years": result.flat_years,
        "event_count": len(result.events_log),
        "latest_event": result.events_log[-1].content if result.events_log else None,
    }


# =============================================================================
# EXPORT
# =============================================================================

def build_export(
    profile: UserProfile,
    events: Sequence[LifeEvent],
    result: SimulationResult,
    params: Optional[dict] = None
) -> Dict[str, Any]:
    """Everything a chart front-end needs for one life, as plain JSON types."""
    params = params or DEFAULT_PARAMS
    return {
        "profile": profile.to_dict(),
        "params": {
            "seed_score": params['seed_score'],
            "min_score": params['min_score'],
            "max_score": params['max_score'],
            "start_age": params['start_age'],
            "end_age": params['end_age'],
            "tick_seconds": params['tick_seconds'],
        },
        "script": [e.to_dict() for e in events],
        "candles": [c.to_dict() for c in result.candles],
        "ticker": build_ticker(result.events_log),
        "summary": summarize(result),
    }


def export_to_json(
    profile: UserProfile,
    events: Sequence[LifeEvent],
    result: SimulationResult,
    output_path: str = "visualization/life.json",
    params: Optional[dict] = None
) -> Dict[str, Any]:
    """Write build_export() to a JSON file, creating its folder if needed."""
    export_data = build_export(profile, events, result, params)

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(export_data, f, indent=2, ensure_ascii=False)

    logger.info(f"Exported {len(result.candles)} candles to {output_file}")
    return export_data


if __name__ == "__main__":
    demo = UserProfile(name='Demo', birth_date='1990-01-01')
    script = fallback_script()
    life = run_simulation(script, rng=random.Random(7))
    export_to_json(demo, script, life)
