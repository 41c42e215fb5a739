"""
Runtime settings (constants + small helpers).
Units: meters (m), seconds (s), meters/second (m/s).
"""
from __future__ import annotations

import logging
import os

# Paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
OUTPUT_DIR = os.path.join(BASE_DIR, "outputs")

# Tick
DT = 0.01                 # s of simulated time per tick
TICK_INTERVAL_MS = 10     # logical display period
MAX_FLIGHT_TIME = 300.0   # s, driver-side cutoff for batch runs

# Form defaults
DEFAULT_WIND = 0.0
DEFAULT_ELEVATION_DEG = 0.0
DEFAULT_CALIBER = 0.00762             # m (7.62 mm)
DEFAULT_BALLISTIC_COEFFICIENT = 0.4

# Input range the form enforces on the ballistic coefficient
BC_UI_RANGE = (0.0, 1.0)

# Logging
LOG_LEVEL = os.environ.get("BALLISTICS_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once; later calls only adjust the level."""
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    root.setLevel(resolved)
