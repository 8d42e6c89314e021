"""Level document (de)serialization and file persistence."""

import json
import logging
import os
from pathlib import Path

from models.level import Level, LevelData

logger = logging.getLogger(__name__)


def migrate_level_data(data: dict) -> dict:
    """Upgrade a raw version 1 document to version 2.

    Version 1 has no gameplay layer, so every tile is floor.
    """
    if data.get("version") == 2:
        return data
    migrated = dict(data)
    migrated["version"] = 2
    migrated.pop("gameplayLayer", None)
    return migrated


def parse_level_data(data: dict) -> LevelData:
    """Validate a raw document dict, migrating old versions first.

    Raises:
        pydantic.ValidationError: If the document is malformed.
    """
    return LevelData.model_validate(migrate_level_data(data))


def serialize_level(level: Level, pretty: bool = False) -> str:
    data = level.to_data().model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, indent=2 if pretty else None)


def deserialize_level(text: str) -> Level:
    """Build a Level from JSON text.

    Raises:
        json.JSONDecodeError: If the text is not JSON.
        pydantic.ValidationError: If the document is malformed.
    """
    return Level.from_data(parse_level_data(json.loads(text)))


def save_level(level: Level, path: str) -> None:
    """Write a level to disk.

    Writes to a temporary file first, then renames for atomicity.

    Args:
        level: The level to save.
        path: File path to write to.
    """
    tmp_path = path + ".tmp"
    with open(tmp_path, "w") as f:
        f.write(serialize_level(level, pretty=True))
    os.replace(tmp_path, path)
    logger.info("Saved level %r to %s", level.metadata.name, path)


def load_level(path: str) -> Level | None:
    """Load a level from a JSON file.

    Returns:
        The loaded Level, or None if the file doesn't exist.
    """
    if not Path(path).exists():
        return None
    with open(path) as f:
        return deserialize_level(f.read())
