"""
Configuration management for the image crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Type, TypeVar
from dataclasses import dataclass, field, fields


T = TypeVar('T')


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: Optional[str] = None
    max_depth: int = 3
    max_workers: int = 10
    queue_capacity: int = 100
    request_timeout: float = 30
    output_dir: str = "images"
    user_agent: str = "ImageCrawler/1.0"
    resolve_relative_urls: bool = True
    unique_filenames: bool = False
    fail_on_http_error: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    prometheus_port: int = 8000
    stats_interval: float = 30


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls: Type[T], name: str, data: Optional[Dict[str, Any]]) -> T:
    """Build a config section, rejecting keys the section does not define."""
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown keys in '{name}' section: {', '.join(unknown)}")

    return section_cls(**data)


def validate_config(config: Config) -> Config:
    """Validate configuration values."""
    crawler = config.crawler

    if crawler.max_depth < 1:
        raise ValueError("max_depth must be at least 1")

    if crawler.max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    if crawler.queue_capacity < 1:
        raise ValueError("queue_capacity must be at least 1")

    if crawler.request_timeout <= 0:
        raise ValueError("request_timeout must be positive")

    if not crawler.output_dir:
        raise ValueError("output_dir must not be empty")

    if config.monitoring.stats_interval < 0:
        raise ValueError("stats_interval must be non-negative")

    logging.getLogger(__name__).debug("Configuration validation passed")
    return config


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from a YAML file, or defaults when no path is set."""
        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file) or {}

            if not isinstance(config_data, dict):
                raise ValueError(f"Configuration file must contain a mapping: {self.config_path}")

        unknown = sorted(set(config_data) - {'crawler', 'logging', 'monitoring'})
        if unknown:
            raise ValueError(f"Unknown configuration sections: {', '.join(unknown)}")

        # Parse configuration sections
        self._config = Config(
            crawler=_build_section(CrawlerConfig, 'crawler', config_data.get('crawler')),
            logging=_build_section(LoggingConfig, 'logging', config_data.get('logging')),
            monitoring=_build_section(MonitoringConfig, 'monitoring', config_data.get('monitoring')),
        )

        return validate_config(self._config)

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()
