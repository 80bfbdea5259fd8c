"""Configuration loader and validation for sync settings."""

from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from .utils.exceptions import ConfigError

logger = logging.getLogger(__name__)


class SyncSettings(BaseModel):
    """Window sizes and reconciliation behaviour of a sync run."""

    fetch_days: int = Field(default=90, ge=1)
    reconcile_days: int = Field(default=60, ge=0)
    reconcile_on_sync: bool = True


class SourceSettings(BaseModel):
    """Configuration for the provider export file."""

    export_path: str = "transactions_export.csv"
    encoding: str = "utf-8"
    delimiter: str = ","
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "card_id": "card_id",
            "card_name": "card_name",
            "provider_id": "provider_id",
            "provider_name": "provider_name",
            "timestamp": "timestamp",
            "description": "description",
            "amount": "amount",
            "currency": "currency",
            "transaction_type": "transaction_type",
            "transaction_id": "normalised_provider_transaction_id",
        }
    )


class StoreSettings(BaseModel):
    """Configuration for the workbook the sheets are kept in."""

    workbook_path: str = "card_transactions.xlsx"
    highlight_unmatched: bool = True
    freeze_header: bool = True


class LoggingSettings(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class AppConfig(BaseModel):
    """Main configuration model."""

    sync: SyncSettings = Field(default_factory=SyncSettings)
    source: SourceSettings = Field(default_factory=SourceSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "sync": {
            "fetch_days": 90,
            "reconcile_days": 60,
            "reconcile_on_sync": True,
        },
        "source": {
            "export_path": "transactions_export.csv",
            "encoding": "utf-8",
            "delimiter": ",",
            "column_mappings": {
                "card_id": "card_id",
                "card_name": "card_name",
                "provider_id": "provider_id",
                "provider_name": "provider_name",
                "timestamp": "timestamp",
                "description": "description",
                "amount": "amount",
                "currency": "currency",
                "transaction_type": "transaction_type",
                "transaction_id": "normalised_provider_transaction_id",
            },
        },
        "store": {
            "workbook_path": "card_transactions.xlsx",
            "highlight_unmatched": True,
            "freeze_header": True,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        AppConfig object with loaded or default settings

    Raises:
        ConfigError: If the file cannot be parsed or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping at top level")

        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return AppConfig(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def with_sync_overrides(config: AppConfig, **overrides: Any) -> AppConfig:
    """
    Return a copy of the configuration with command-line sync settings applied.

    Overrides that are None are ignored. The result is validated the same way
    as a configuration file.

    Raises:
        ConfigError: If an override is out of range
    """
    sync_overrides = {key: value for key, value in overrides.items() if value is not None}
    if not sync_overrides:
        return config

    config_dict = _deep_merge(config.model_dump(), {"sync": sync_overrides})
    try:
        return AppConfig(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid option: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Card ledger sync configuration
# sync.fetch_days: trailing days requested from the provider on each run
# sync.reconcile_days: maximum days between a debit and its offsetting credit

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
