import datetime as dt
import random

import pytest

from astrosena.models import Draw, DrawFeatures

PHASES = ["New Moon", "Waxing Crescent", "First Quarter", "Waxing Gibbous",
          "Full Moon", "Waning Gibbous", "Last Quarter", "Waning Crescent"]
SIGNS = ["Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
         "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces"]
ELEMENTS = ["fire", "earth", "air", "water"]


def digital_root(value: int) -> int:
    while value >= 10:
        value = sum(int(d) for d in str(value))
    return value


def build_history(count: int, seed: int = 7):
    """Synthetic enriched history with deterministic numbers and features."""
    rng = random.Random(seed)
    start = dt.date(2020, 1, 4)
    draws = []
    for i in range(count):
        draw_id = i + 1
        date = start + dt.timedelta(days=3 * i)
        features = DrawFeatures(
            lunar_phase=PHASES[i % len(PHASES)],
            moon_sign=SIGNS[(i * 5) % len(SIGNS)],
            sun_sign=SIGNS[(i // 10) % len(SIGNS)],
            dominant_element=ELEMENTS[i % len(ELEMENTS)],
            weekday_index=date.weekday(),
            date_digital_root=digital_root(date.year + date.month + date.day),
            id_digital_root=digital_root(draw_id),
        )
        draws.append(Draw(id=draw_id, date=date, numbers=tuple(rng.sample(range(1, 61), 6)), features=features))
    return draws


@pytest.fixture
def history():
    return build_history(80)


@pytest.fixture
def short_history():
    return build_history(30)


@pytest.fixture
def make_history():
    return build_history
