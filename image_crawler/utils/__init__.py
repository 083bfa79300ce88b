"""
Utility modules for the image crawler.
"""

from .config import Config, ConfigManager, load_config, validate_config

__all__ = ['Config', 'ConfigManager', 'load_config', 'validate_config']
