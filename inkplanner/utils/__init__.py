"""
Configuration and per-user directories.
"""
from .config import REFERENCE_SCALE, EngineConfig, load_config
from .resource_loader import get_app_data_dir, get_asset_dir, get_config_dir

__all__ = [
    'EngineConfig',
    'REFERENCE_SCALE',
    'load_config',
    'get_app_data_dir',
    'get_asset_dir',
    'get_config_dir',
]
