from pathlib import Path

import pytest

from ledger_scheduler.config import SimulationConfig, load_config


def test_defaults():
    config = SimulationConfig()
    assert (config.max_accounts, config.max_processes, config.quantum) == (10, 100, 2)
    assert (config.min_execution_time, config.max_execution_time) == (1, 5)
    assert config.seed is None


def test_load_config(tmp_path: Path):
    p = tmp_path / "c.json"
    p.write_text('{"max_accounts": 4, "quantum": "3", "seed": 11}')
    config = load_config(p)
    assert config.max_accounts == 4
    assert config.quantum == 3
    assert config.seed == 11
    assert config.max_processes == 100


@pytest.mark.parametrize(
    "raw",
    [
        {"quantum": 0},
        {"max_accounts": "many"},
        {"min_execution_time": 4, "max_execution_time": 2},
        {"priority": 1},
    ],
)
def test_invalid_config(raw):
    with pytest.raises(ValueError):
        SimulationConfig.from_mapping(raw)


def test_config_must_be_object(tmp_path: Path):
    p = tmp_path / "c.json"
    p.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_config(p)


def test_with_overrides_ignores_none():
    config = SimulationConfig(quantum=3)
    assert config.with_overrides(quantum=None, seed=None) is config
    assert config.with_overrides(seed=5).seed == 5
    assert config.with_overrides(seed=5).quantum == 3
