"""Loading mirror pairs from JSON configuration files."""

import json
import logging
from pathlib import Path

from ..exceptions import MirrorConfigError
from .pair import MirrorPair

logger = logging.getLogger(__name__)


def load_mirror_pairs_from_json(path: Path) -> list[MirrorPair]:
    """Load mirror pairs from a JSON file.

    The file holds a list of pair objects::

        [
          {"source": "/data/docs", "replica": "/backup/docs",
           "interval": 60, "logFile": "/var/log/pyreplica.log"}
        ]

    Args:
        path: JSON file to read

    Returns:
        List of MirrorPair objects

    Raises:
        MirrorConfigError: If the file cannot be read or is malformed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise MirrorConfigError(f"Config file not found: {path}") from None
    except json.JSONDecodeError as e:
        raise MirrorConfigError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise MirrorConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, list):
        raise MirrorConfigError("Config file must contain a list of mirror pairs")

    pairs: list[MirrorPair] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise MirrorConfigError(f"Mirror pair #{index + 1} must be an object")
        try:
            pairs.append(MirrorPair.from_dict(item))
        except MirrorConfigError as e:
            raise MirrorConfigError(f"Mirror pair #{index + 1}: {e}") from e

    logger.debug(f"Loaded {len(pairs)} mirror pair(s) from {path}")
    return pairs
