# config.py
from functools import lru_cache
from pathlib import Path
from dotenv import load_dotenv
import logging
import os

load_dotenv(Path(__file__).parent.parent / ".env")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@lru_cache
def settings():
    return {
        # Empty → the feed runs on the simulated random walk only
        "PRICE_FEED_URL": os.getenv("PRICE_FEED_URL", ""),
        "PRICE_FEED_TIMEOUT": float(os.getenv("PRICE_FEED_TIMEOUT", "3")),
        "TICK_SECONDS": int(os.getenv("TICK_SECONDS", "3")),
        "SETTLEMENT_DELAY_MS": int(os.getenv("SETTLEMENT_DELAY_MS", "900")),
        "FEE_RATE": float(os.getenv("FEE_RATE", "0.005")),
        # Pricing context code, e.g. "TR" or "AE"
        "DEFAULT_CONTEXT": os.getenv("DEFAULT_CONTEXT", "TR"),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
    }


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level = (level or settings()["LOG_LEVEL"]).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level)
