"""Plausible fake readings for a topic, picked by substring of the topic name."""

import random
from typing import Optional, Tuple

# (substring, low, high, decimals); decimals=None means a whole number.
# Checked in order, first match wins ("Total Active Power" before "Active Power").
TOPIC_RANGES: Tuple[Tuple[str, float, float, Optional[int]], ...] = (
    ("Current", 30.0, 50.0, 1),
    ("Phase V", 220.0, 230.0, 1),
    ("Neutral V", 220.0, 230.0, 1),
    ("Total Active Power", 80000.0, 90000.0, 0),
    ("Active Power", 25000.0, 30000.0, 0),
    ("Frequency", 49.8, 50.3, 1),
    ("Water", 70.0, 90.0, None),
    ("Airflow", 7.0, 9.0, 1),
    ("/T", 20.0, 40.0, None),
    ("/H", 40.0, 70.0, None),
)


def simulated_value(topic: str, rng: Optional[random.Random] = None) -> str:
    """Return a fake payload for ``topic`` as text, like a sensor would publish it."""
    rng = rng or random
    for needle, low, high, decimals in TOPIC_RANGES:
        if needle in topic:
            if decimals is None:
                return str(rng.randint(int(low), int(high)))
            return f"{rng.uniform(low, high):.{decimals}f}"
    if "Network" in topic:
        return "1"
    return "0"
