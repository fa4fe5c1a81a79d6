"""Alias appris par l'utilisateur (persistés en JSON) et table de synonymes intégrée."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable

from fieldconcord.config import FieldConcordError
from fieldconcord.normalize import norm_text

logger = logging.getLogger(__name__)

# Groupes de noms équivalents fournis par défaut (source -> cibles).
BUILTIN_DEFAULT_MAPPINGS: dict[str, list[str]] = {
    "Speed": ["Velocity", "MoveSpeed", "MaxSpeed"],
    "Velocity": ["Speed", "MoveSpeed", "MaxSpeed"],
    "Health": ["HitPoints", "HP", "Life", "HealthPoints"],
    "HitPoints": ["Health", "HP", "Life", "HealthPoints"],
    "Position": ["Location", "Pos", "Transform"],
    "Location": ["Position", "Pos", "Transform"],
    "Damage": ["AttackPower", "Attack", "Dmg", "Power"],
    "AttackPower": ["Damage", "Attack", "Dmg", "Power"],
    "CharacterName": ["Title", "Name", "DisplayName"],
    "Title": ["CharacterName", "Name", "DisplayName"],
    "IsMoving": ["CanMove", "Moving"],
    "CanMove": ["IsMoving", "Moving"],
    "IsActive": ["Enabled", "Active", "IsEnabled"],
    "Enabled": ["IsActive", "Active", "IsEnabled"],
    "TeamColor": ["FactionColor", "Color"],
    "FactionColor": ["TeamColor", "Color"],
}


class AliasStoreError(FieldConcordError):
    """Erreur de lecture ou d'écriture du fichier d'alias."""


@dataclass
class AliasMapping:
    """Un alias appris : (type source, champ source) -> champ cible."""

    source_type: str
    source_field: str
    target_field: str

    def matches(self, source_type: str, source_field: str) -> bool:
        return norm_text(self.source_type) == norm_text(source_type) and norm_text(self.source_field) == norm_text(
            source_field
        )


class AliasStore:
    """
    Magasin d'alias persisté dans un fichier JSON.

    Format : ``{"aliases": [{"source_type", "source_field", "target_field"}]}``.
    Les comparaisons sont insensibles à la casse. Le matching n'utilise que
    :meth:`lookup`.
    """

    def __init__(self, path: str | Path | None = None, aliases: Iterable[AliasMapping] = ()) -> None:
        self.path = Path(path) if path is not None else None
        self.aliases: list[AliasMapping] = list(aliases)

    @classmethod
    def load(cls, path: str | Path) -> AliasStore:
        """
        Charge les alias ; un fichier absent donne un magasin vide.

        Raises:
            AliasStoreError: JSON invalide ou structure inattendue.
        """
        path = Path(path)
        if not path.exists():
            logger.debug("Fichier d'alias absent, magasin vide: %s", path)
            return cls(path)
        try:
            with open(path, encoding="utf-8") as f:
                d = json.load(f)
        except json.JSONDecodeError as e:
            raise AliasStoreError(f"JSON invalide dans {path}: {e}") from e
        except OSError as e:
            raise AliasStoreError(f"Impossible de lire {path}: {e}") from e

        if not isinstance(d, dict) or not isinstance(d.get("aliases", []), list):
            raise AliasStoreError(f"Fichier d'alias invalide: {path} doit contenir {{'aliases': [...]}}")

        aliases: list[AliasMapping] = []
        for entry in d.get("aliases", []):
            try:
                aliases.append(
                    AliasMapping(
                        source_type=str(entry["source_type"]),
                        source_field=str(entry["source_field"]),
                        target_field=str(entry["target_field"]),
                    )
                )
            except (KeyError, TypeError) as e:
                raise AliasStoreError(f"Entrée d'alias invalide dans {path}: {entry!r}") from e
        logger.debug("%d alias chargés depuis %s", len(aliases), path)
        return cls(path, aliases)

    def save(self, path: str | Path | None = None) -> None:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise AliasStoreError("Aucun chemin de sauvegarde pour les alias")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                json.dump({"aliases": [asdict(a) for a in self.aliases]}, f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise AliasStoreError(f"Impossible d'écrire {target}: {e}") from e
        self.path = target

    def lookup(self, source_type: str, source_field: str) -> str | None:
        """Nom cible appris pour (type source, champ source), ou None."""
        for a in self.aliases:
            if a.matches(source_type, source_field):
                return a.target_field
        return None

    def has_alias(self, source_type: str, source_field: str, target_field: str) -> bool:
        found = self.lookup(source_type, source_field)
        return found is not None and norm_text(found) == norm_text(target_field)

    def add_alias(self, source_type: str, source_field: str, target_field: str) -> None:
        """Ajoute un alias, en remplaçant celui du même (type, champ source)."""
        self.aliases = [a for a in self.aliases if not a.matches(source_type, source_field)]
        self.aliases.append(AliasMapping(source_type, source_field, target_field))
        logger.info("Alias appris: %s.%s -> %s", source_type, source_field, target_field)

    def remove_alias(self, source_type: str, source_field: str) -> bool:
        before = len(self.aliases)
        self.aliases = [a for a in self.aliases if not a.matches(source_type, source_field)]
        return len(self.aliases) < before

    def __len__(self) -> int:
        return len(self.aliases)


def _mapping_key(name: str) -> str:
    # "Move Speed", "move_speed" et "MoveSpeed" désignent le même nom
    return norm_text(name).replace(" ", "").replace("_", "")


class DefaultMappings:
    """
    Table de synonymes intégrée, insensible à la casse.

    Chaque entrée source -> cibles est enregistrée dans les deux sens : la
    relation est symétrique quelle que soit la façon dont la table est écrite.
    """

    def __init__(self, groups: dict[str, list[str]] | None = None, *, include_builtin: bool = True) -> None:
        self._table: dict[str, set[str]] = {}
        if include_builtin:
            self.extend(BUILTIN_DEFAULT_MAPPINGS)
        if groups:
            self.extend(groups)

    def extend(self, groups: dict[str, list[str]]) -> None:
        for source, targets in groups.items():
            for target in targets:
                self._add(source, target)
                self._add(target, source)

    def _add(self, a: str, b: str) -> None:
        ka, kb = _mapping_key(a), _mapping_key(b)
        if ka != kb:
            self._table.setdefault(ka, set()).add(kb)

    def is_default_mapping(self, source_name: str, target_name: str) -> bool:
        return _mapping_key(target_name) in self._table.get(_mapping_key(source_name), ())

    __call__ = is_default_mapping

    def synonyms(self, name: str) -> list[str]:
        return sorted(self._table.get(_mapping_key(name), ()))
