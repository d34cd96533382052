"""
Tests for loading enriched draws and target features.
"""

import json

import pytest

from astrosena.errors import InvalidInputError
from astrosena.loader import draw_from_record, features_from_astro, load_draws, load_target_features


def _astro(phase="Full Moon", moon="Leo", sun="Aries", element="fire", weekday=2, date_root=5, id_root=7):
    return {
        "lunar_phase": {"name": phase, "illumination": 0.98},
        "bodies": {"moon": {"sign": {"label": moon}}, "sun": {"sign": {"label": sun}}},
        "dominant": {"element": element},
        "numerology": {"weekday_index": weekday, "date_digital_root": date_root, "concurso_digital_root": id_root},
    }


def _record(concurso, balls, **astro):
    record = {"concurso": concurso, "data_sorteio": "2024-03-0%d" % concurso}
    record.update({f"bola{i}": n for i, n in enumerate(balls, start=1)})
    record["astro"] = _astro(**astro)
    return record


def _write(path, payload, bom=False):
    text = json.dumps(payload)
    path.write_text(("\ufeff" if bom else "") + text, encoding="utf-8")
    return str(path)


class TestFeaturesFromAstro:
    """Test suite for features_from_astro."""

    def test_nested_payload(self):
        """Test extraction of the seven features."""
        features = features_from_astro(_astro())

        assert features.lunar_phase == "Full Moon"
        assert features.moon_sign == "Leo"
        assert features.sun_sign == "Aries"
        assert features.dominant_element == "fire"
        assert features.weekday_index == 2
        assert features.date_digital_root == 5
        assert features.id_digital_root == 7

    def test_partial_payload(self):
        """Test that missing branches become None."""
        features = features_from_astro({"lunar_phase": {"name": "New Moon"}, "bodies": {}})

        assert features.lunar_phase == "New Moon"
        assert features.moon_sign is None
        assert features.weekday_index is None

    def test_no_payload(self):
        """Test that a record without enrichment has empty features."""
        assert features_from_astro(None).lunar_phase is None


class TestDrawFromRecord:
    """Test suite for draw_from_record."""

    def test_enriched_shape(self):
        """Test the concurso/bola record shape."""
        draw = draw_from_record(_record(3, [10, 20, 30, 40, 50, 60]))

        assert draw.id == 3
        assert draw.date.isoformat() == "2024-03-03"
        assert draw.numbers == (10, 20, 30, 40, 50, 60)
        assert draw.features.moon_sign == "Leo"

    def test_flat_shape(self):
        """Test the id/numbers/features record shape."""
        draw = draw_from_record(
            {"id": 9, "date": "2024-01-02", "numbers": [1, 2, 3, 4, 5, 6], "features": {"lunarPhase": "New Moon"}}
        )

        assert draw.id == 9
        assert draw.features.lunar_phase == "New Moon"

    def test_missing_ball(self):
        """Test that a missing column is reported as invalid input."""
        record = _record(1, [1, 2, 3, 4, 5, 6])
        del record["bola6"]
        with pytest.raises(InvalidInputError):
            draw_from_record(record)

    def test_invalid_numbers(self):
        """Test that out-of-range numbers are rejected."""
        with pytest.raises(InvalidInputError):
            draw_from_record(_record(1, [1, 2, 3, 4, 5, 61]))

    def test_bad_date(self):
        """Test that an unparseable date is rejected."""
        record = _record(1, [1, 2, 3, 4, 5, 6])
        record["data_sorteio"] = "not a date"
        with pytest.raises(InvalidInputError):
            draw_from_record(record)


class TestLoadDraws:
    """Test suite for load_draws and load_target_features."""

    def test_sorted_by_id_with_bom(self, tmp_path):
        """Test that draws are sorted and a BOM is tolerated."""
        path = _write(
            tmp_path / "draws.json",
            [_record(2, [7, 8, 9, 10, 11, 12]), _record(1, [1, 2, 3, 4, 5, 6])],
            bom=True,
        )
        draws = load_draws(path)

        assert [d.id for d in draws] == [1, 2]

    def test_duplicate_ids(self, tmp_path):
        """Test that duplicate draw ids are rejected."""
        path = _write(tmp_path / "draws.json", [_record(1, [1, 2, 3, 4, 5, 6]), _record(1, [7, 8, 9, 10, 11, 12])])
        with pytest.raises(InvalidInputError):
            load_draws(path)

    def test_missing_file(self, tmp_path):
        """Test that a missing file is reported as invalid input."""
        with pytest.raises(InvalidInputError):
            load_draws(str(tmp_path / "nope.json"))

    def test_not_a_list(self, tmp_path):
        """Test that a JSON object is not a draw sequence."""
        with pytest.raises(InvalidInputError):
            load_draws(_write(tmp_path / "draws.json", {"draws": []}))

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON is reported as invalid input."""
        path = tmp_path / "draws.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(InvalidInputError):
            load_draws(str(path))

    def test_target_nested(self, tmp_path):
        """Test a target file in the enriched shape."""
        path = _write(tmp_path / "target.json", {"astro": _astro(phase="Last Quarter")})

        assert load_target_features(path).lunar_phase == "Last Quarter"

    def test_target_flat(self, tmp_path):
        """Test a target file with flat keys."""
        path = _write(tmp_path / "target.json", {"moonSign": "Virgo", "weekday_index": 5})
        features = load_target_features(path)

        assert features.moon_sign == "Virgo"
        assert features.weekday_index == 5
