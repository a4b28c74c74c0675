"""Bunch of small utilities."""

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any

import coloredlogs

from eth_hundredx.errors import EncodingFailure


def now_ms() -> int:
    """Current UNIX time in milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1_000)


def dump_json(payload: Any) -> str:
    """Serialise an outbound payload.

    :raise EncodingFailure:
        Payload contains something JSON cannot represent.
    """
    try:
        return json.dumps(payload, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodingFailure(f"Could not encode outbound payload: {e}") from e


def setup_console_logging(default_log_level="warning") -> logging.Logger:
    """Set up coloured log output for scripts.

    - ``LOG_LEVEL`` environment variable overrides ``default_log_level``

    - Tune down noisy dependency logging

    :return:
        Root logger
    """
    level = os.environ.get("LOG_LEVEL", default_log_level).upper()
    numeric_level = getattr(logging, level, None)
    assert isinstance(numeric_level, int), f"No log level: {level}"

    fmt = "%(asctime)s %(name)-30s %(message)s"
    date_fmt = "%H:%M:%S"
    coloredlogs.install(level=numeric_level, fmt=fmt, datefmt=date_fmt)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)

    return logging.getLogger()
