#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("types-publisher")

ENV_PREFIX = "TYPESPUB_"


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. TYPESPUB_CONFIG environment variable
    2. ~/.types-publisher/ directory
    """
    if 'TYPESPUB_CONFIG' in os.environ:
        path = Path(os.environ['TYPESPUB_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.types-publisher'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists():
            return path

    return config_dir / 'config.json'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_overrides(config)

    logging.getLogger().setLevel(config["logging"]["level"])
    return config


def get_default_config():
    """Get default configuration."""
    return {
        "registry": {
            "url": "https://registry.npmjs.org",
            "scope": "@types",
            "package_name": "types-registry",
            "timeout_seconds": 30,
            "max_retries": 3,
        },
        "publish": {
            "fetch_parallelism": 25,
            "prerelease_tag": "",
            "staleness_days": 7,
        },
        "paths": {
            "data_dir": "./data",
            "output_dir": "./output",
            "validate_dir": "./validateOutput",
            "logs_dir": "./logs",
        },
        "logging": {
            "level": "INFO",
        },
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: TYPESPUB_SECTION_KEY
    For example: TYPESPUB_PUBLISH_FETCH_PARALLELISM=10
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'TYPESPUB_CONFIG':
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


@dataclass(frozen=True)
class Options:
    """Settings threaded explicitly through generation and publishing."""
    registry_url: str = "https://registry.npmjs.org"
    scope: str = "@types"
    registry_package_name: str = "types-registry"
    timeout_seconds: int = 30
    max_retries: int = 3
    fetch_parallelism: int = 25
    prerelease_tag: str = ""
    staleness_days: int = 7
    data_dir: Path = Path("./data")
    output_dir: Path = Path("./output")
    validate_dir: Path = Path("./validateOutput")
    logs_dir: Path = Path("./logs")

    @classmethod
    def from_config(cls, config: dict) -> 'Options':
        registry = config.get("registry", {})
        publish = config.get("publish", {})
        paths = config.get("paths", {})
        defaults = cls()
        options = cls(
            registry_url=str(registry.get("url", defaults.registry_url)).rstrip('/'),
            scope=registry.get("scope", defaults.scope),
            registry_package_name=registry.get("package_name", defaults.registry_package_name),
            timeout_seconds=int(registry.get("timeout_seconds", defaults.timeout_seconds)),
            max_retries=int(registry.get("max_retries", defaults.max_retries)),
            fetch_parallelism=int(publish.get("fetch_parallelism", defaults.fetch_parallelism)),
            prerelease_tag=publish.get("prerelease_tag") or "",
            staleness_days=int(publish.get("staleness_days", defaults.staleness_days)),
            data_dir=Path(paths.get("data_dir", defaults.data_dir)).expanduser(),
            output_dir=Path(paths.get("output_dir", defaults.output_dir)).expanduser(),
            validate_dir=Path(paths.get("validate_dir", defaults.validate_dir)).expanduser(),
            logs_dir=Path(paths.get("logs_dir", defaults.logs_dir)).expanduser(),
        )
        if options.fetch_parallelism < 1:
            raise ConfigError(f"publish.fetch_parallelism must be at least 1, got {options.fetch_parallelism}")
        return options

    @classmethod
    def defaults(cls) -> 'Options':
        return cls.from_config(get_default_config())

    def full_package_name(self, name: str) -> str:
        """Scoped npm name, e.g. ``@types/node``."""
        return f"{self.scope}/{name}"

    @property
    def registry_output_dir(self) -> Path:
        return self.output_dir / self.registry_package_name
