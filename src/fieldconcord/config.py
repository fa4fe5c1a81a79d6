"""Configuration et chargement du fichier config JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

VALID_SOLVERS = frozenset({"greedy", "hungarian"})
VALID_OVERWRITE_MODES = frozenset({"always", "if_empty"})


class FieldConcordError(Exception):
    """Exception de base pour FieldConcord."""


class ConfigError(FieldConcordError, ValueError):
    """Erreur de validation de la configuration."""


class ConfigFileError(FieldConcordError):
    """Erreur de chargement du fichier de configuration (fichier absent, JSON invalide)."""


@dataclass(frozen=True)
class SolverConfig:
    """Choix de l'algorithme d'affectation, passé à chaque appel."""

    use_exact_solver: bool = False

    @property
    def solver_name(self) -> str:
        return "hungarian" if self.use_exact_solver else "greedy"


@dataclass
class Config:
    """Configuration principale de FieldConcord."""

    solver: str = "greedy"  # greedy, hungarian
    alias_file: str | None = None
    use_default_mappings: bool = True
    # Groupes de synonymes supplémentaires : nom -> [synonymes]
    default_mappings: dict[str, list[str]] = field(default_factory=dict)
    overwrite_mode: str = "always"  # always, if_empty
    source_sheet: str | None = None  # None = première feuille
    target_sheet: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Config:
        solver = d.get("solver", "greedy")
        overwrite_mode = d.get("overwrite_mode", "always")
        default_mappings = d.get("default_mappings", {})
        alias_file = d.get("alias_file")

        if solver not in VALID_SOLVERS:
            raise ConfigError(f"solver invalide: {solver!r}. Valides: {sorted(VALID_SOLVERS)}")
        if overwrite_mode not in VALID_OVERWRITE_MODES:
            raise ConfigError(f"overwrite_mode invalide: {overwrite_mode!r}. Valides: {sorted(VALID_OVERWRITE_MODES)}")
        if not isinstance(default_mappings, dict):
            raise ConfigError("default_mappings doit être un objet {nom: [synonymes]}")
        for name, synonyms in default_mappings.items():
            if not isinstance(synonyms, list) or not all(isinstance(s, str) for s in synonyms):
                raise ConfigError(f"default_mappings[{name!r}] doit être une liste de chaînes")
        if alias_file is not None and not isinstance(alias_file, str):
            raise ConfigError(f"alias_file doit être un chemin (got {alias_file!r})")

        return cls(
            solver=solver,
            alias_file=alias_file or None,
            use_default_mappings=bool(d.get("use_default_mappings", True)),
            default_mappings={str(k): list(v) for k, v in default_mappings.items()},
            overwrite_mode=overwrite_mode,
            source_sheet=d.get("source_sheet"),
            target_sheet=d.get("target_sheet"),
        )

    @classmethod
    def load(cls, path: str | Path) -> Config:
        """
        Charge la configuration depuis un fichier JSON.

        Raises:
            ConfigFileError: Si le fichier est absent ou le JSON invalide.
            ConfigError: Si la configuration est invalide.
        """
        path = Path(path).resolve()
        if not path.exists():
            raise ConfigFileError(f"Fichier de configuration introuvable: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                d = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigFileError(f"JSON invalide dans {path}: {e}") from e
        except OSError as e:
            raise ConfigFileError(f"Impossible de lire {path}: {e}") from e

        if not isinstance(d, dict):
            raise ConfigFileError(f"Fichier de configuration invalide: {path} doit contenir un objet JSON")

        config = cls.from_dict(d)
        config.resolve_paths(path.parent)
        return config

    def resolve_paths(self, base_dir: Path) -> None:
        """
        Résout le chemin du fichier d'alias par rapport au répertoire de base.

        Modifie alias_file en place.
        """
        base = Path(base_dir)
        if self.alias_file and not Path(self.alias_file).is_absolute():
            self.alias_file = str((base / self.alias_file).resolve())

    def solver_config(self) -> SolverConfig:
        return SolverConfig(use_exact_solver=self.solver == "hungarian")
