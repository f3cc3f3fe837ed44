"""
Logging setup for the ``wirebind`` logger hierarchy.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_level(level: str | int) -> int:
    """Level name ("debug", "info", ...) or number to a numeric level."""
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    return numeric


def configure_logging(level: str | int = "info") -> None:
    """Configure root logging for CLI and server runs."""
    numeric = parse_level(level)
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("wirebind").setLevel(numeric)
