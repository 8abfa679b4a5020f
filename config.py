"""
Configuration for the life K-line simulation.

This file contains the numeric policy of the price-path model.
Tweak these values to make a life calmer or wilder.
"""

# =============================================================================
# MODEL PARAMETERS
# =============================================================================

DEFAULT_PARAMS = {
    # Starting point
    'seed_score': 50.0,               # Open of the very first candle

    # Value band (close is always clamped into it)
    'min_score': 0.0,
    'max_score': 120.0,

    # Mean reversion
    'center_score': 50.0,             # Score the path is pulled back to
    'mean_reversion_strength': 0.05,  # Fraction of the distance removed per year

    # Market noise
    'volatility_range': 10.0,         # Full width, noise is uniform in [-5, +5]

    # Scripted events
    'impact_multiplier': 2.0,         # Each event moves the close by impact * 2

    # Wicks (intra-year extremes)
    'wick_body_factor': 0.5,          # Wick grows with half the body size...
    'wick_base': 2.0,                 # ...plus a fixed minimum reach

    # Time horizon
    'start_age': 0,
    'end_age': 80,

    # Playback pacing for the ticking driver
    'tick_seconds': 0.3,              # One simulated year per 300ms
}

# =============================================================================
# LIFE EVENTS
# =============================================================================

EVENT_CATEGORIES = ('CAREER', 'LOVE', 'HEALTH', 'WEALTH', 'RANDOM')

# Used whenever the generated script is unavailable.
# impact runs from -10 (crash) to +10 (rally)
FALLBACK_EVENTS = [
    {'age': 3, 'content': 'Learned to talk, first words were mum and dad', 'impact': 2, 'category': 'RANDOM'},
    {'age': 7, 'content': 'Started primary school, curious about everything', 'impact': 1, 'category': 'CAREER'},
    {'age': 18, 'content': 'Sat the university entrance exam, felt the pressure of life', 'impact': -2, 'category': 'CAREER'},
    {'age': 22, 'content': 'Graduated, searching for a direction', 'impact': 0, 'category': 'CAREER'},
    {'age': 30, 'content': 'Career on the rise, but the body is tired', 'impact': 3, 'category': 'WEALTH'},
    {'age': 45, 'content': 'Happy family, yet a midlife crisis looms', 'impact': -1, 'category': 'HEALTH'},
    {'age': 60, 'content': 'Retirement begins, enjoying time with the grandchildren', 'impact': 5, 'category': 'RANDOM'},
]
