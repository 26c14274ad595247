# tradebook/utils/config_loader.py
"""
Configuration loading utilities with environment variable support.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..models.config import AppConfig, BacktestConfig, EntryCondition, ExitRule


DEFAULT_CONFIG_PATH = "configs/backtest.yaml"

# ${NAME} or ${NAME:default}
_ENV_PLACEHOLDER = re.compile(r'\$\{(?P<name>[^}:]+)(?::(?P<default>[^}]*))?\}')


def _expand(match: "re.Match[str]") -> str:
    value = os.getenv(match.group('name'))
    if value is not None:
        return value
    if match.group('default') is not None:
        return match.group('default')
    return match.group(0)


def substitute_env_vars(config_str: str) -> str:
    """
    Replace ${NAME} and ${NAME:default} placeholders from the environment.

    Unset variables without a default are left as written.
    """
    return _ENV_PLACEHOLDER.sub(_expand, config_str)


def _read_yaml_mapping(config_path: str) -> Dict[str, Any]:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        data = yaml.safe_load(substitute_env_vars(path.read_text(encoding='utf-8')))
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a YAML mapping")
    return data


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries where override wins."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            value = _merge_dicts(merged[key], value)
        merged[key] = value
    return merged


def load_config(
    config_path: str = DEFAULT_CONFIG_PATH,
    base_config_path: Optional[str] = None,
) -> AppConfig:
    """
    Load a backtest configuration from YAML.

    Args:
        config_path: Path to configuration file
        base_config_path: Optional file whose values the config file overrides

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        ValueError: If the file is not a mapping or its values are invalid
    """
    data = _read_yaml_mapping(config_path)
    if base_config_path and Path(base_config_path).exists():
        data = _merge_dicts(_read_yaml_mapping(base_config_path), data)

    try:
        return AppConfig(**data)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e


def save_config(config: AppConfig, config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a configuration as YAML, creating parent directories."""
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)


def get_default_config() -> AppConfig:
    """Starter configuration: RSI mean reversion on synthetic RELIANCE data."""
    return AppConfig(backtest=BacktestConfig(
        strategy_name="RSI Mean Reversion",
        symbol="RELIANCE",
        start_date="2023-01-01",
        end_date="2023-12-31",
        entry_conditions=[EntryCondition(indicator="RSI", operator="<", value=30)],
        exit_rules=[
            ExitRule(type="profit_target", value=5),
            ExitRule(type="stop_loss", value=3),
            ExitRule(type="time_based", value=20),
        ],
    ))
