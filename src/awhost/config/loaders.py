import json
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)


def load_file(path: Path) -> dict:
    """
    Load a configuration document from a YAML or JSON file.

    :param path: Path to the configuration file.
    :return: Dictionary with configuration data.
    :raises FileNotFoundError: If the file does not exist.
    :raises IsADirectoryError: If the path is a directory.
    :raises RuntimeError: If the file type is not supported or the document is not a mapping.
    """
    logger.debug("Loading configuration file: %s", path)
    assert path is not None

    if not path.exists():
        logger.error("Config file not found: %s", path.absolute())
        raise FileNotFoundError(f"Config file not found: {path.absolute()}")

    if path.is_dir():
        logger.error("Path is a directory, not a file: %s", path.absolute())
        raise IsADirectoryError(path.absolute())

    with open(path, "r", encoding="utf-8") as fp:
        if fp.read(1) == "":
            logger.debug("Config file is empty: %s", path)
            return {}

        fp.seek(0)

        if path.suffix in YAML_SUFFIXES:
            logger.debug("Parsing YAML file: %s", path.name)
            data = yaml.safe_load(fp)
        elif path.suffix in JSON_SUFFIXES:
            logger.debug("Parsing JSON file: %s", path.name)
            data = json.load(fp)
        else:
            logger.error("Invalid file type: %s", path.name)
            raise RuntimeError("Invalid file type given: %s" % path.name)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"Config file must contain a mapping at the top level: {path.name}")
    return data


def flatten(data: dict, prefix: str = "") -> dict[str, str]:
    """
    Flatten a nested mapping into dotted keys with string values.

    ``{"db": {"port": 5432, "ssl": True}}`` becomes
    ``{"db.port": "5432", "db.ssl": "true"}``. ``None`` values are dropped;
    lists are rendered as JSON.
    """
    flat: dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten(value, prefix=f"{full_key}."))
        elif value is None:
            continue
        elif isinstance(value, bool):
            flat[full_key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            flat[full_key] = json.dumps(value)
        else:
            flat[full_key] = str(value)
    return flat
