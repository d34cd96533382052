"""
Export Module for astrosena.

Writes backtest, tuning and prediction payloads to JSON and their tabular
views to CSV, and reads tuning chunk files back for merging.
"""
import glob
import json
import os
from typing import Any, Dict, List, Tuple

import pandas as pd
from loguru import logger

from astrosena.backtest import BacktestReport
from astrosena.errors import InvalidInputError
from astrosena.predictor import Prediction
from astrosena.tuning import TuningReport

TUNING_COLUMNS: List[str] = [
    "group",
    "name",
    "windowSize",
    "halfLife",
    "explore",
    "hotBoost",
    "coldBoost",
    "coldWindow",
    "avgBestHits",
    "avgAvgHits",
    "pctAtLeast2",
    "pctAtLeast3",
]
RATE_COLUMNS = ["avgBestHits", "avgAvgHits", "pctAtLeast2", "pctAtLeast3"]
CHUNK_PATTERN = "tuning_chunk_*.json"


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def write_json(payload: Dict[str, Any], path: str) -> str:
    _ensure_parent(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Wrote {path}")
    return path


def tuning_frame(report: TuningReport) -> pd.DataFrame:
    """One row per configuration, groups in grid/candidates/random order."""
    rows = []
    for group, results in report.groups().items():
        for result in results:
            row: Dict[str, Any] = {"group": group, "name": result.name}
            row.update(result.params.as_dict())
            row.update(result.stats.rates())
            rows.append(row)
    return pd.DataFrame(rows, columns=TUNING_COLUMNS)


def export_tuning(report: TuningReport, json_path: str, csv_path: str) -> Tuple[str, str]:
    write_json(report.as_dict(), json_path)
    df = tuning_frame(report)
    _ensure_parent(csv_path)
    df.to_csv(csv_path, index=False, float_format="%.4f")
    logger.info(f"Wrote {csv_path} ({len(df)} rows)")
    return json_path, csv_path


def export_backtest(report: BacktestReport, json_path: str) -> str:
    return write_json(report.as_dict(), json_path)


def prediction_frame(prediction: Prediction) -> pd.DataFrame:
    rows = []
    for i, (ticket, ent) in enumerate(zip(prediction.tickets, prediction.entropies), start=1):
        row: Dict[str, Any] = {"ticket": i}
        row.update({f"n{j}": n for j, n in enumerate(ticket, start=1)})
        row["entropy"] = ent
        rows.append(row)
    return pd.DataFrame(rows)


def export_prediction(prediction: Prediction, json_path: str, csv_path: str) -> Tuple[str, str]:
    write_json(prediction.as_dict(), json_path)
    _ensure_parent(csv_path)
    prediction_frame(prediction).to_csv(csv_path, index=False)
    logger.info(f"Wrote {csv_path}")
    return json_path, csv_path


def load_tuning_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidInputError(f"Could not read tuning results {path}: {e}") from e


def load_tuning_chunks(directory: str, pattern: str = CHUNK_PATTERN) -> Tuple[List[Dict[str, Any]], List[str]]:
    """Reads every chunk file in `directory`, sorted by file name."""
    files = sorted(glob.glob(os.path.join(directory, pattern)))
    if not files:
        raise InvalidInputError(f"No chunk files found in {directory}")
    logger.info(f"Found {len(files)} chunk files in {directory}")
    return [load_tuning_file(f) for f in files], [os.path.basename(f) for f in files]
