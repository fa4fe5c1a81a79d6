"""Transfert des valeurs source vers l'objet cible selon les correspondances."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fieldconcord.codec import ValueCodec
from fieldconcord.config import VALID_OVERWRITE_MODES, ConfigError, FieldConcordError
from fieldconcord.matching.schema import Match
from fieldconcord.typesys import SchemaIntrospector

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({"true", "1", "yes", "oui"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "non"})


@dataclass
class TransferResult:
    """Bilan d'un transfert : chemins écrits et chemins ignorés (avec raison)."""

    applied: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)


def parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"booléen invalide: {value!r}")


def coerce_value(value: Any, declared: type | None) -> Any:
    """
    Convertit une valeur décodée vers le type déclaré du champ cible.

    Conversions : int↔float, chaîne → int/float/bool, nombre → bool, tout → str.

    Raises:
        TypeError: Conversion impossible.
        ValueError: Chaîne non interprétable.
    """
    if declared is None or value is None:
        return value
    if declared is bool:
        if isinstance(value, str):
            return parse_bool(value)
        if isinstance(value, (int, float)):
            return bool(value)
    if isinstance(value, declared):
        return value
    if declared is float and isinstance(value, (int, str)):
        return float(value)
    if declared is int:
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                return int(float(value))
    if declared is str:
        return str(value)
    raise TypeError(f"conversion impossible {type(value).__name__} -> {declared.__name__}")


def _resolve_parent(obj: Any, path: str) -> tuple[Any, str]:
    parts = path.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    return obj, parts[-1]


def _is_empty(val: object) -> bool:
    return val is None or (isinstance(val, str) and val.strip() == "")


def apply_matches(
    target: Any,
    matches: list[Match],
    *,
    codec: ValueCodec | None = None,
    introspector: SchemaIntrospector | None = None,
    overwrite_mode: str = "always",
) -> TransferResult:
    """
    Écrit la valeur source de chaque correspondance dans l'objet cible (en place).

    Une correspondance qui échoue (décodage, conversion, attribut en lecture
    seule) est ignorée et notée dans ``skipped`` ; les autres sont appliquées.

    Args:
        target: Objet cible, modifié en place.
        matches: Correspondances produites par le Linker.
        codec: Codec de valeurs (défaut : ValueCodec()).
        introspector: Résolution des types déclarés de la cible.
        overwrite_mode: always, if_empty.

    Returns:
        TransferResult.
    """
    if overwrite_mode not in VALID_OVERWRITE_MODES:
        raise ConfigError(f"overwrite_mode invalide: {overwrite_mode!r}. Valides: {sorted(VALID_OVERWRITE_MODES)}")
    codec = codec or ValueCodec()
    introspector = introspector or SchemaIntrospector()
    result = TransferResult()

    for m in matches:
        path = m.target.path
        try:
            parent, attr = _resolve_parent(target, path)
            current = getattr(parent, attr)
            if overwrite_mode == "if_empty" and not _is_empty(current):
                result.skipped[path] = "déjà renseigné"
                continue

            if m.source.references:
                value = m.source.references[0]
            elif m.source.value is not None:
                value = codec.decode(m.source.value)
            else:
                result.skipped[path] = "valeur source absente"
                continue

            declared = introspector.resolve_type(type(target), path)
            if declared is None and current is not None:
                declared = type(current)
            setattr(parent, attr, coerce_value(value, declared))
            result.applied.append(path)
        except (FieldConcordError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Transfert ignoré %s -> %s: %s", m.source.path, path, e)
            result.skipped[path] = str(e)

    logger.info("%d valeur(s) transférée(s), %d ignorée(s)", len(result.applied), len(result.skipped))
    return result
