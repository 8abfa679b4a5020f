#!/usr/bin/env python3
"""
Flask API for the Life K-line Simulator

Provides endpoints to simulate a life with custom parameters.
"""

from flask import Flask, request, jsonify
from flask_cors import CORS
from loguru import logger
import copy
import random

from config import DEFAULT_PARAMS, FALLBACK_EVENTS
from kline_simulator import run_simulation
from life_script import UserProfile, generate_life_script
from export_data import build_export

app = Flask(__name__)
CORS(app)

# Overridable model parameters and how to coerce them
FLOAT_PARAMS = (
    'seed_score', 'min_score', 'max_score', 'center_score',
    'mean_reversion_strength', 'volatility_range', 'impact_multiplier',
    'wick_body_factor', 'wick_base', 'tick_seconds',
)
INT_PARAMS = ('start_age', 'end_age')


def merge_params(user_params: dict) -> dict:
    """Start from DEFAULT_PARAMS and override with any known keys from the request."""
    if not isinstance(user_params, dict):
        raise ValueError("params must be a JSON object")
    params = copy.deepcopy(DEFAULT_PARAMS)

    for key in FLOAT_PARAMS:
        if key in user_params:
            params[key] = float(user_params[key])
    for key in INT_PARAMS:
        if key in user_params:
            params[key] = int(user_params[key])

    if params['min_score'] >= params['max_score']:
        raise ValueError("min_score must be below max_score")
    if params['start_age'] > params['end_age']:
        raise ValueError("start_age must not exceed end_age")
    return params


def simulate_life(profile: UserProfile, params: dict, seed=None, records=None) -> dict:
    """
    Fetch the script, run one life and return it in JSON format.

    If the request carries its own event records they act as the script
    generator, so a broken script still falls back to the fixed one.
    """
    generator = (lambda _profile: records) if records is not None else None
    script = generate_life_script(profile, generator)

    rng = random.Random(seed) if seed is not None else random
    result = run_simulation(script, params, rng)
    return build_export(profile, script, result, params)


@app.route('/api/simulate', methods=['POST'])
def simulate():
    """
    Simulate a life.

    Accepts JSON body with a 'profile' object, optional overrides for any
    DEFAULT_PARAMS values under 'params', an optional 'seed' and optional
    'events' to use instead of the generated script.
    """
    user_params = request.get_json(silent=True) or {}

    try:
        if not isinstance(user_params, dict):
            raise ValueError("Request body must be a JSON object")
        profile = UserProfile.from_dict(user_params.get('profile') or {})
        params = merge_params(user_params.get('params') or {})
        seed = user_params.get('seed')
        if seed is not None:
            seed = int(seed)
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = simulate_life(profile, params, seed, user_params.get('events'))
        return jsonify(result)
    except Exception as e:
        logger.exception(f"Simulation failed for {profile.name}")
        return jsonify({"error": str(e)}), 500


@app.route('/api/defaults', methods=['GET'])
def get_defaults():
    """Return default parameters so frontend can initialize inputs."""
    return jsonify(DEFAULT_PARAMS)


@app.route('/api/fallback-events', methods=['GET'])
def get_fallback_events():
    """Return the script used when generation is unavailable."""
    return jsonify(FALLBACK_EVENTS)


if __name__ == '__main__':
    print("Starting Life K-line API on http://localhost:5000")
    app.run(debug=True, port=5000)
