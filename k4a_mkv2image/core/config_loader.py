from pathlib import Path
from typing import Any, Dict

from k4a_mkv2image.core.errors import StartupError
from k4a_mkv2image.core.logging_utils import get_module_logger

logger = get_module_logger(__name__)


class ConfigLoader:
    """Loader for ``key = value`` settings files.

    Only keys present in ``defaults`` are accepted; each value is parsed as
    the type of its default. A value that does not parse keeps the default.
    """

    @staticmethod
    def load(config_path: Path, defaults: Dict[str, Any]) -> Dict[str, Any]:
        if not config_path.is_file():
            raise StartupError(f"config file not found: {config_path}")

        config = dict(defaults)
        logger.debug("Loading config from: %s", config_path)

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                lines = f.readlines()
        except OSError as e:
            raise StartupError(f"failed to read config file {config_path}: {e}") from e

        for line_num, line in enumerate(lines, 1):
            line = line.split('#', 1)[0].strip()
            if not line:
                continue

            if '=' not in line:
                logger.warning(
                    "Invalid config line %d (missing '='): %s",
                    line_num, line
                )
                continue

            key, value = (part.strip() for part in line.split('=', 1))
            if key not in defaults:
                known = ", ".join(sorted(defaults))
                raise StartupError(
                    f"unknown config key '{key}' at {config_path}:{line_num} (expected one of: {known})"
                )
            config[key] = ConfigLoader._parse_value_with_type(key, value, defaults[key])

        logger.info("Loaded config from %s", config_path)
        return config

    @staticmethod
    def _parse_value_with_type(key: str, value: str, default: Any) -> Any:
        target_type = type(default)
        try:
            if target_type is int:
                return int(value, 0)  # decimal or 0x... hex
            return target_type(value)
        except ValueError:
            logger.warning(
                "Failed to parse %s = '%s' as %s, using default %s",
                key, value, target_type.__name__, default
            )
            return default
