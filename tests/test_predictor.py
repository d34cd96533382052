"""
Tests for forward prediction of a future draw.
"""

import pytest

from astrosena.errors import InvalidInputError
from astrosena.models import DrawFeatures, PredictorParams, RunSettings
from astrosena.predictor import learn_blender, predict_next


@pytest.fixture
def params():
    return PredictorParams(window_size=30, half_life=12.0, explore=0.15, hot_boost=0.1, cold_boost=0.2, cold_window=8)


@pytest.fixture
def target():
    return DrawFeatures(lunar_phase="Full Moon", moon_sign="Leo", sun_sign="Aries", weekday_index=2)


class TestPredictNext:
    """Test suite for predict_next."""

    def test_ticket_count_and_shape(self, history, params, target):
        """Test that the requested number of valid tickets is returned."""
        prediction = predict_next(history, target, params, RunSettings(min_history=50), tickets_count=7)

        assert len(prediction.tickets) == 7
        assert len(prediction.entropies) == 7
        for ticket in prediction.tickets:
            assert len(set(ticket)) == 6
            assert all(1 <= n <= 60 for n in ticket)
        assert prediction.weights.sum() == pytest.approx(1.0)
        assert sum(prediction.coefficients.values()) == pytest.approx(1.0)

    def test_deterministic(self, history, params, target):
        """Test that predictions are reproducible for one seed."""
        settings = RunSettings(min_history=50, seed=3)
        a = predict_next(history, target, params, settings, tickets_count=5)
        b = predict_next(history, target, params, settings, tickets_count=5)

        assert a.as_dict() == b.as_dict()

    def test_coefficients_learned_from_history(self, history, params, target):
        """Test that the coefficients equal a full replay of the history."""
        settings = RunSettings(min_history=50)
        expected = learn_blender(history, params, settings).coefficients()
        prediction = predict_next(history, target, params, settings, tickets_count=1)

        assert prediction.coefficients == pytest.approx(expected)

    def test_hot_numbers_from_latest_draws(self, history, params, target):
        """Test that hot numbers come from the last cold_window draws."""
        prediction = predict_next(history, target, params, RunSettings(min_history=50), tickets_count=1)
        expected = sorted({n for d in history[-params.cold_window:] for n in d.numbers})

        assert list(prediction.hot_cold.hot) == expected

    def test_short_history_uses_initial_state(self, short_history, params, target):
        """Test that too little history leaves equal coefficients."""
        prediction = predict_next(short_history, target, params, RunSettings(min_history=50), tickets_count=2)

        assert prediction.coefficients == pytest.approx({"freq": 1 / 3, "recency": 1 / 3, "astro": 1 / 3})

    def test_invalid_requests(self, history, params, target):
        """Test rejected inputs."""
        with pytest.raises(InvalidInputError):
            predict_next(history, target, params, tickets_count=0)
        with pytest.raises(InvalidInputError):
            predict_next([], target, params)

    def test_serialized_shape(self, history, params, target):
        """Test the JSON-ready payload."""
        data = predict_next(history, target, params, RunSettings(min_history=50), tickets_count=3).as_dict()

        assert data["config"] == params.as_dict()
        assert data["target"]["lunarPhase"] == "Full Moon"
        assert len(data["weights"]) == 60
        assert len(data["tickets"]) == 3
