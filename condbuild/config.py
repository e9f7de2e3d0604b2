#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("condbuild")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']

# Tags never pruned by default: prod, test and anything semver-like
DEFAULT_KEEP_REGEX = r'^(prod|test|(v(\d+)(\.\d+){0,2}.*))$'


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. CONDBUILD_CONFIG environment variable
    2. ~/.condbuild/ directory
    """
    if 'CONDBUILD_CONFIG' in os.environ:
        path = Path(os.environ['CONDBUILD_CONFIG'])
        if path.exists():
            return path

    condbuild_dir = Path.home() / '.condbuild'
    for filename in CONFIG_FILENAMES:
        path = condbuild_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return condbuild_dir / 'config.json'


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
                import yaml
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except Exception as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_overrides(config)

    return config


def save_config(config, config_path=None):
    """Save configuration to file."""
    config_path = Path(config_path) if config_path else get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.suffix.lower() in ['.toml']:
            import toml
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            import yaml
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)

        logger.info(f"Configuration saved to {config_path}")
    except Exception as e:
        logger.error(f"Error saving config to {config_path}: {e}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "registry": {
            "host": "ghcr.io",
            "probe_timeout_seconds": 30,
        },
        "github": {
            "api_url": "https://api.github.com",
            "token": "",
            "rate_limit": {
                "max_retries": 3,
                "max_delay_seconds": 60,
            }
        },
        "git": {
            "remote": "origin",
            "default_branch": "main",
            "timeout_seconds": 60,
        },
        "build": {
            "push": True,
            "builder": "condbuild",
            "cache_from": "type=gha",
            "cache_to": "type=gha,mode=max",
            "timeout_seconds": 3600,
        },
        "sbom": {
            "enabled": True,
            "directory": "sboms",
            "formats": ["cyclonedx-json", "spdx-json"],
        },
        "attestation": {
            "enabled": True,
            "predicate_type": "https://in-toto.io/attestation/release/v0.1",
        },
        "retention": {
            "keep_regex": DEFAULT_KEEP_REGEX,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def configure_logging(config, verbose=False):
    """Apply the logging section of the config to the package logger."""
    level_name = 'DEBUG' if verbose else str(config.get('logging', {}).get('level', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)
    fmt = config.get('logging', {}).get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


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
    Environment variables follow the pattern: CONDBUILD_SECTION_SUBSECTION_KEY
    For example: CONDBUILD_SBOM_ENABLED=false
    """
    env_prefix = "CONDBUILD_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'CONDBUILD_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        if value.lower() in ('true', '1', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', '0', 'no', 'off'):
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

            if matched_key:
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    break
            else:
                break

    return config
