"""Tests du module config."""

from pathlib import Path

import pytest

from fieldconcord.config import Config, ConfigError, SolverConfig


def test_config_defaults() -> None:
    config = Config()
    assert config.solver == "greedy"
    assert config.use_default_mappings is True
    assert config.overwrite_mode == "always"
    assert config.solver_config() == SolverConfig(use_exact_solver=False)


def test_solver_config_name() -> None:
    assert SolverConfig().solver_name == "greedy"
    assert SolverConfig(use_exact_solver=True).solver_name == "hungarian"


def test_config_from_dict_hungarian() -> None:
    config = Config.from_dict({"solver": "hungarian", "default_mappings": {"Mana": ["Energy"]}})
    assert config.solver_config().use_exact_solver is True
    assert config.default_mappings == {"Mana": ["Energy"]}


def test_config_resolve_paths(tmp_path: Path) -> None:
    """Le fichier d'alias relatif est résolu par rapport au dossier du fichier config."""
    config_dir = tmp_path / "mon_projet"
    config_dir.mkdir()

    config = Config(alias_file="data/aliases.json")
    config.resolve_paths(config_dir)

    assert Path(config.alias_file).is_absolute()
    assert Path(config.alias_file).parent.parent == config_dir.resolve()


def test_config_load_resolves_paths(tmp_path: Path) -> None:
    """Config.load() résout automatiquement les chemins relatifs."""
    config_path = tmp_path / "config.json"
    config_path.write_text(
        """
        {
            "solver": "hungarian",
            "alias_file": "aliases.json",
            "overwrite_mode": "if_empty"
        }
    """,
        encoding="utf-8",
    )

    config = Config.load(config_path)
    assert Path(config.alias_file).is_absolute()
    assert Path(config.alias_file).name == "aliases.json"
    assert config.overwrite_mode == "if_empty"


def test_config_validation_invalid_solver() -> None:
    with pytest.raises(ConfigError, match="solver invalide"):
        Config.from_dict({"solver": "simplex"})


def test_config_validation_invalid_overwrite_mode() -> None:
    with pytest.raises(ConfigError, match="overwrite_mode invalide"):
        Config.from_dict({"overwrite_mode": "never"})


def test_config_validation_default_mappings_not_dict() -> None:
    with pytest.raises(ConfigError, match="default_mappings doit être un objet"):
        Config.from_dict({"default_mappings": ["Speed", "Velocity"]})


def test_config_validation_default_mappings_values() -> None:
    with pytest.raises(ConfigError, match="liste de chaînes"):
        Config.from_dict({"default_mappings": {"Speed": "Velocity"}})


def test_config_validation_alias_file_type() -> None:
    with pytest.raises(ConfigError, match="alias_file doit être un chemin"):
        Config.from_dict({"alias_file": 42})


def test_config_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        Config.from_dict({"solver": "?"})
