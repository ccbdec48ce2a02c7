"""
Engine settings, read from ``config.json`` in the user's config directory.
"""
import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Tuple, Union

from .resource_loader import get_config_dir

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"

# Link rectangles and page sizes are always measured at this scale
REFERENCE_SCALE = 1.0


@dataclass(frozen=True)
class EngineConfig:
    history_limit: int = 50
    preview_scale: float = 1.5
    recognition_timeout: float = 2.0
    default_dimensions: Tuple[float, float] = (800, 1000)
    default_section: str = "General"
    data_dir: Optional[str] = None

    @property
    def reference_scale(self) -> float:
        return REFERENCE_SCALE


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine settings.

    Args:
        config_path: JSON file to read; defaults to the user's config file

    Returns:
        Settings from the file merged over the defaults. A missing file gives
        the defaults; unknown keys are ignored.
    """
    path = Path(config_path) if config_path else get_config_dir() / CONFIG_FILE_NAME
    if not path.exists():
        return EngineConfig()

    with open(path, 'r') as f:
        data = json.load(f)

    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))

    values = {k: v for k, v in data.items() if k in known}
    if "default_dimensions" in values:
        values["default_dimensions"] = tuple(values["default_dimensions"])
    return EngineConfig(**values)
