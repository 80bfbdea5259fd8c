from pathlib import Path

import pytest
import yaml

from card_ledger_sync.config import (
    generate_default_config,
    load_config,
    with_sync_overrides,
)
from card_ledger_sync.utils.exceptions import ConfigError


def test_defaults_without_file():
    config = load_config(None)

    assert config.sync.fetch_days == 90
    assert config.sync.reconcile_days == 60
    assert config.sync.reconcile_on_sync is True
    assert config.store.workbook_path == "card_transactions.xlsx"
    assert config.config_file_path is None


def test_user_file_is_deep_merged(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        yaml.safe_dump(
            {
                "sync": {"fetch_days": 30},
                "source": {"column_mappings": {"transaction_id": "txn_id"}},
            }
        )
    )

    config = load_config(config_file)

    assert config.sync.fetch_days == 30
    assert config.sync.reconcile_days == 60
    assert config.source.column_mappings["transaction_id"] == "txn_id"
    assert config.source.column_mappings["card_id"] == "card_id"
    assert config.config_file_path == str(config_file)


def test_invalid_window_is_config_error(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("sync:\n  fetch_days: 0\n")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_malformed_yaml_is_config_error(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("sync: [unclosed\n")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_generated_config_loads_back(tmp_path: Path):
    output = tmp_path / "nested" / "config.yaml"

    generate_default_config(output)
    config = load_config(output)

    assert output.read_text().startswith("# Card ledger sync configuration")
    assert config.sync.fetch_days == 90


def test_sync_overrides_applied_and_none_ignored():
    config = load_config(None)

    updated = with_sync_overrides(config, fetch_days=14, reconcile_days=None)

    assert updated.sync.fetch_days == 14
    assert updated.sync.reconcile_days == 60
    assert config.sync.fetch_days == 90


@pytest.mark.parametrize(
    "overrides",
    [{"reconcile_days": -1}, {"fetch_days": 0}],
)
def test_out_of_range_override_is_config_error(overrides):
    with pytest.raises(ConfigError):
        with_sync_overrides(load_config(None), **overrides)
