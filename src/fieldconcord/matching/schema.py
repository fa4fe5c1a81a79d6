"""Schémas et types pour le matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fieldconcord.codec import Encoded
from fieldconcord.normalize import bare_name

# (type propriétaire, nom source) -> nom cible appris, ou None
AliasLookup = Callable[[str, str], Optional[str]]
# (nom source, nom cible) -> synonymes intégrés ?
DefaultMappingLookup = Callable[[str, str], bool]
# (type source, type cible, élargissement numérique autorisé) -> compatibles ?
TypesCompatible = Callable[[str, str, bool], bool]


@dataclass(frozen=True)
class FieldDescriptor:
    """Un champ source capturé, avec sa valeur encodée."""

    path: str
    name: str
    type_id: str
    value: Encoded | None = None
    references: tuple[Any, ...] = ()
    former_names: tuple[str, ...] = ()

    @property
    def bare_name(self) -> str:
        return bare_name(self.path)


@dataclass(frozen=True)
class TargetDescriptor:
    """Un champ de destination candidat."""

    path: str
    name: str
    type_id: str

    @property
    def bare_name(self) -> str:
        return bare_name(self.path)


@dataclass(frozen=True)
class CapturedFieldSet:
    """Champs capturés sur un objet source, transmis de la capture au matching puis au transfert."""

    source_type: str
    fields: tuple[FieldDescriptor, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class ScoringContext:
    """Vue d'une paire (source, cible) pour les stratégies de score."""

    source: FieldDescriptor
    target: TargetDescriptor
    source_owner_type: str
    types_compatible: TypesCompatible
    target_owner_type: str | None = None
    alias_lookup: AliasLookup | None = None
    is_default_mapping: DefaultMappingLookup | None = None

    def compatible(self, allow_numeric_widening: bool = False) -> bool:
        return self.types_compatible(self.source.type_id, self.target.type_id, allow_numeric_widening)

    @property
    def same_owner_type(self) -> bool:
        return bool(self.source_owner_type) and self.source_owner_type == self.target_owner_type


@dataclass(frozen=True)
class ScoredPair:
    """Paire candidate retenue (score au-dessus du seuil de bruit)."""

    source_index: int
    target_index: int
    score: float
    strategy: str = ""


@dataclass(frozen=True)
class Match:
    """Correspondance finale entre un champ source et un champ cible."""

    source: FieldDescriptor
    target: TargetDescriptor
    score: float
    strategy: str = ""

    def __repr__(self) -> str:
        return f"Match({self.source.path!r} -> {self.target.path!r}, score={self.score:.2f}, {self.strategy})"
