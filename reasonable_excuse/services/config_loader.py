"""
Config File Loader

Reads config.kdl and turns it into a validated ServerSettings.

KDL node names are the kebab-case form of the settings fields. Scalar
settings are child nodes holding a single argument:

    address "0.0.0.0:3000"
    upload {
        route "/upload"
        target-dir "/data"
        filename-length 6
    }

Every problem found is collected and reported in one ConfigError.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import kdl
from pydantic import ValidationError

from reasonable_excuse.models.settings import ServerSettings

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the config file or the state it refers to is unusable."""


# node name -> accepted scalar children, per block
_TOP_LEVEL = {"address", "allow-origin"}
_BLOCKS = {
    "upload": {"route", "target-dir", "filename-length"},
    "firefly-shortcuts": {"route", "firefly-url", "pat-file"},
    "calendar": {"route", "base-url", "pass-param", "filter"},
}
_SHORTCUT_FIELDS = {"name", "source", "destination", "amount", "budget", "category"}


def _field(node_name: str) -> str:
    return node_name.replace("-", "_")


# Values stay wrapped so whole numbers keep their int type
_PARSE_CONFIG = kdl.ParseConfig(nativeUntaggedValues=False)


def _value(value: Any) -> Any:
    if isinstance(value, kdl.Decimal) and isinstance(value.mantissa, int) and value.exponent >= 0:
        return value.mantissa * 10 ** value.exponent
    return getattr(value, "value", value)


def _scalar(node, where: str, errors: List[str]) -> Any:
    args = list(node.args or [])
    if len(args) != 1:
        errors.append(f"{where}: expected exactly one argument, got {len(args)}")
        return None
    if node.props:
        errors.append(f"{where}: unexpected properties {sorted(node.props)}")
    if node.nodes:
        errors.append(f"{where}: unexpected children")
    return _value(args[0])


def _collect(nodes, allowed: set, where: str, errors: List[str]) -> Dict[str, Any]:
    """Read scalar child nodes, flagging unknown and repeated ones."""
    data: Dict[str, Any] = {}
    for node in nodes:
        path = f"{where}.{node.name}" if where else node.name
        if node.name not in allowed:
            errors.append(f"{path}: unknown node")
            continue
        key = _field(node.name)
        if key in data:
            errors.append(f"{path}: given more than once")
            continue
        data[key] = _scalar(node, path, errors)
    return data


def _shortcut(node, index: int, errors: List[str]) -> Dict[str, Any]:
    where = f"firefly-shortcuts.shortcut[{index}]"
    args = list(node.args or [])
    props = dict(node.props or {})

    data = _collect(node.nodes or [], _SHORTCUT_FIELDS, where, errors)

    if len(args) != 1:
        errors.append(f"{where}: expected the shortcut name as its only argument")
    else:
        data["shortcut_name"] = _value(args[0])

    if "icon" in props:
        data["shortcut_icon"] = _value(props.pop("icon"))
    if props:
        errors.append(f"{where}: unexpected properties {sorted(props)}")

    return data


def _to_dict(document, errors: List[str]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    top_level = []

    for node in document.nodes:
        if node.name not in _BLOCKS:
            top_level.append(node)
            continue

        key = _field(node.name)
        if key in data:
            errors.append(f"{node.name}: given more than once")
            continue
        if node.args or node.props:
            errors.append(f"{node.name}: block takes no arguments or properties")

        children = list(node.nodes or [])
        block_data = _collect(
            [c for c in children if c.name != "shortcut"], _BLOCKS[node.name], node.name, errors
        )
        shortcuts = [c for c in children if c.name == "shortcut"]
        if node.name == "firefly-shortcuts":
            block_data["shortcuts"] = [
                _shortcut(child, index, errors) for index, child in enumerate(shortcuts)
            ]
        elif shortcuts:
            errors.append(f"{node.name}.shortcut: unknown node")
        data[key] = block_data

    data.update(_collect(top_level, _TOP_LEVEL, "", errors))
    return data


def _format_validation_error(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "config"
        messages.append(f"{location}: {error['msg']}")
    return messages


def parse_settings(text: str, source: str = "config.kdl") -> ServerSettings:
    """
    Parse KDL config text into ServerSettings.

    Args:
        text: Contents of the config file
        source: Name used in error messages

    Returns:
        Validated settings

    Raises:
        ConfigError: If the text is not valid KDL or does not describe a valid config
    """
    try:
        document = kdl.parse(text, _PARSE_CONFIG)
    except Exception as e:
        raise ConfigError(f"Failed to parse config file {source}: {e}") from e

    errors: List[str] = []
    data = _to_dict(document, errors)

    if not errors:
        try:
            return ServerSettings.model_validate(data)
        except ValidationError as e:
            errors.extend(_format_validation_error(e))

    raise ConfigError(
        f"Failed to parse config file {source}:\n" + "\n".join(f"  - {e}" for e in errors)
    )


def load_settings(path) -> ServerSettings:
    """
    Read and parse the config file at ``path``.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {path}: {e}") from e

    settings = parse_settings(text, source=str(path))
    logger.info(f"Loaded config from {path}")
    return settings
