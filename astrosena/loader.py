"""
Loads enriched draw sequences and target feature bags from JSON.
"""
import json
import os
from typing import Any, List, Mapping, Optional

import pandas as pd
from loguru import logger

from astrosena.errors import InvalidInputError
from astrosena.models import Draw, DrawFeatures

BALL_COLUMNS = [f"bola{i}" for i in range(1, 7)]


def _dig(data: Optional[Mapping[str, Any]], *path: str) -> Any:
    """Follows nested keys, returning None as soon as one is missing."""
    current: Any = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def features_from_astro(astro: Optional[Mapping[str, Any]]) -> DrawFeatures:
    """
    Extracts the seven comparable features from the enrichment payload
    (lunar_phase / bodies / dominant / numerology).
    """
    if not astro:
        return DrawFeatures()
    return DrawFeatures(
        lunar_phase=_dig(astro, "lunar_phase", "name"),
        moon_sign=_dig(astro, "bodies", "moon", "sign", "label"),
        sun_sign=_dig(astro, "bodies", "sun", "sign", "label"),
        dominant_element=_dig(astro, "dominant", "element"),
        weekday_index=_dig(astro, "numerology", "weekday_index"),
        date_digital_root=_dig(astro, "numerology", "date_digital_root"),
        id_digital_root=_dig(astro, "numerology", "concurso_digital_root"),
    )


def _parse_date(value: Any):
    if value in (None, ""):
        return None
    return pd.to_datetime(value).date()


def draw_from_record(record: Mapping[str, Any]) -> Draw:
    """
    Converts one JSON record into a Draw. Accepts the enriched export shape
    (concurso, data_sorteio, bola1..bola6, astro) and a flat shape
    (id, date, numbers, features).
    """
    try:
        if "concurso" in record:
            return Draw(
                id=int(record["concurso"]),
                date=_parse_date(record.get("data_sorteio")),
                numbers=tuple(record[col] for col in BALL_COLUMNS),
                features=features_from_astro(record.get("astro")),
            )
        return Draw(
            id=int(record["id"]),
            date=_parse_date(record.get("date")),
            numbers=tuple(record["numbers"]),
            features=DrawFeatures.from_mapping(record.get("features")),
        )
    except InvalidInputError:
        raise
    except KeyError as exc:
        raise InvalidInputError(f"Draw record is missing field {exc.args[0]!r}: {dict(record)}") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Malformed draw record {dict(record)}: {exc}") from exc


def _read_json(path: str) -> Any:
    if not os.path.exists(path):
        raise InvalidInputError(f"Input not found: {path}")
    try:
        # utf-8-sig strips a leading BOM.
        with open(path, "r", encoding="utf-8-sig") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON in {path}: {e}") from e


def load_draws(path: str) -> List[Draw]:
    """
    Loads the enriched historical sequence, sorted by ascending id.

    Returns:
        List[Draw]: validated draws. Raises InvalidInputError on any bad record.
    """
    logger.info(f"Loading draws from {path}")
    payload = _read_json(path)
    if not isinstance(payload, list):
        raise InvalidInputError(f"Expected a JSON array of draws in {path}")

    draws = [draw_from_record(record) for record in payload]
    draws.sort(key=lambda d: d.id)
    ids = [d.id for d in draws]
    if len(set(ids)) != len(ids):
        raise InvalidInputError(f"Duplicate draw ids in {path}")
    logger.info(f"Loaded {len(draws)} draws")
    return draws


def load_target_features(path: str) -> DrawFeatures:
    """Reads the feature bag of a future draw (nested `astro` shape or flat keys)."""
    payload = _read_json(path)
    if not isinstance(payload, dict):
        raise InvalidInputError(f"Expected a JSON object with target features in {path}")
    if "astro" in payload:
        payload = payload["astro"]
    if "lunar_phase" in payload and isinstance(payload["lunar_phase"], dict):
        features = features_from_astro(payload)
    else:
        features = DrawFeatures.from_mapping(payload)
    logger.info(f"Target features: {features}")
    return features
