"""
Configuration for astrosena.

This file holds the fixed constants of the game and the built-in defaults of
the predictor, plus the helpers that read `config/config.ini`. Centralizing
these parameters makes it easy to fine-tune a strategy without modifying
the core logic.
"""
import configparser
import os
from typing import Any, Dict, List, Tuple

from loguru import logger

# --- Game ---
DOMAIN_SIZE: int = 60
TICKET_SIZE: int = 6
NUMBERS: Tuple[int, ...] = tuple(range(1, DOMAIN_SIZE + 1))

# --- Adaptive blending ---
INITIAL_SCORE: float = 1.0
SCORE_DECAY: float = 0.9

# --- Ticket entropy ---
ENTROPY_BIN_WIDTH: int = 10
ENTROPY_BIN_COUNT: int = 6

# --- Astro similarity ---
# Order: lunar phase, moon sign, sun sign, dominant element, weekday,
# date digital root, id digital root.
DEFAULT_ASTRO_WEIGHTS: Tuple[float, ...] = (1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0)

# --- Predictor defaults ---
DEFAULT_WINDOW_SIZE: int = 200
DEFAULT_HALF_LIFE: float = 20.0
DEFAULT_EXPLORE: float = 0.1
DEFAULT_HOT_BOOST: float = 0.05
DEFAULT_COLD_BOOST: float = 0.1
DEFAULT_COLD_WINDOW: int = 25
DEFAULT_TICKETS_PER_DRAW: int = 10
DEFAULT_MIN_HISTORY: int = 50
DEFAULT_SEED: int = 42
DEFAULT_PREDICTION_TICKETS: int = 20

# --- Tuning ---
DEFAULT_TUNING_SEED: int = 12345
DEFAULT_RANDOM_TRIALS: int = 20
GRID_SEED_BASE: int = 0
CANDIDATE_SEED_BASE: int = 1000
RANDOM_SEED_BASE: int = 2000

# --- Paths ---
DEFAULT_CONFIG_PATH: str = os.path.join("config", "config.ini")
DEFAULT_LOG_FILE: str = os.path.join("logs", "astrosena.log")


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> configparser.ConfigParser:
    """
    Loads config.ini. A missing file yields an empty parser so every getter
    falls back to the built-in defaults.
    """
    config = configparser.ConfigParser()
    if os.path.exists(config_path):
        config.read(config_path, encoding="utf-8")
        logger.info(f"Configuration loaded from {config_path}")
    else:
        logger.warning(f"Configuration file not found: {config_path}. Using built-in defaults")
    return config


def parse_float_list(raw: str) -> Tuple[float, ...]:
    """Parses a comma-separated list such as ``"1, 1, 0.5"``."""
    return tuple(float(part) for part in raw.split(",") if part.strip())


def get_predictor_defaults(config: configparser.ConfigParser) -> Dict[str, Any]:
    """Reads the [predictor] section with fallbacks for every key."""
    section = "predictor"
    astro_raw = config.get(section, "astro_weights", fallback="")
    return {
        "window_size": config.getint(section, "window_size", fallback=DEFAULT_WINDOW_SIZE),
        "half_life": config.getfloat(section, "half_life", fallback=DEFAULT_HALF_LIFE),
        "explore": config.getfloat(section, "explore", fallback=DEFAULT_EXPLORE),
        "hot_boost": config.getfloat(section, "hot_boost", fallback=DEFAULT_HOT_BOOST),
        "cold_boost": config.getfloat(section, "cold_boost", fallback=DEFAULT_COLD_BOOST),
        "cold_window": config.getint(section, "cold_window", fallback=DEFAULT_COLD_WINDOW),
        "tickets_per_draw": config.getint(section, "tickets_per_draw", fallback=DEFAULT_TICKETS_PER_DRAW),
        "min_history": config.getint(section, "min_history", fallback=DEFAULT_MIN_HISTORY),
        "stride": config.getint(section, "stride", fallback=1),
        "seed": config.getint(section, "seed", fallback=DEFAULT_SEED),
        "astro_weights": parse_float_list(astro_raw) if astro_raw else DEFAULT_ASTRO_WEIGHTS,
    }


def get_tuning_defaults(config: configparser.ConfigParser) -> Dict[str, Any]:
    """Reads the [tuning] section with fallbacks for every key."""
    section = "tuning"
    return {
        "tickets_per_draw": config.getint(section, "tickets_per_draw", fallback=DEFAULT_TICKETS_PER_DRAW),
        "min_history": config.getint(section, "min_history", fallback=DEFAULT_MIN_HISTORY),
        "stride": config.getint(section, "stride", fallback=1),
        "seed": config.getint(section, "seed", fallback=DEFAULT_TUNING_SEED),
        "random_trials": config.getint(section, "random_trials", fallback=DEFAULT_RANDOM_TRIALS),
        "random_seed": config.getint(section, "random_seed", fallback=DEFAULT_TUNING_SEED),
        "workers": config.getint(section, "workers", fallback=1),
    }


def get_paths(config: configparser.ConfigParser) -> Dict[str, str]:
    """Reads the [paths] section."""
    section = "paths"
    data_dir = config.get(section, "data_dir", fallback="data")
    keys: List[Tuple[str, str]] = [
        ("draws_file", "mega_sena_astro.json"),
        ("backtest_output", "backtest_results.json"),
        ("tuning_output", "tuning_results.json"),
        ("tuning_csv", "tuning_results.csv"),
        ("merged_output", "tuning_results_full.json"),
        ("merged_csv", "tuning_results_full.csv"),
        ("prediction_output", "predictions.json"),
        ("prediction_csv", "predictions.csv"),
        ("report_output", "tuning_report.html"),
    ]
    paths = {"data_dir": data_dir}
    for key, filename in keys:
        paths[key] = config.get(section, key, fallback=os.path.join(data_dir, filename))
    paths["log_file"] = config.get(section, "log_file", fallback=DEFAULT_LOG_FILE)
    return paths


def get_prediction_tickets(config: configparser.ConfigParser) -> int:
    return config.getint("prediction", "tickets_count", fallback=DEFAULT_PREDICTION_TICKETS)
