"""Capture des champs d'un objet Python (dataclass ou objet simple)."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from fieldconcord.codec import Encoded, ValueCodec
from fieldconcord.config import FieldConcordError
from fieldconcord.matching.schema import CapturedFieldSet, FieldDescriptor, TargetDescriptor
from fieldconcord.normalize import nicify_name
from fieldconcord.typesys import concrete_type, field_types, type_id

logger = logging.getLogger(__name__)

FORMER_NAMES_KEY = "former_names"


class CaptureError(FieldConcordError, TypeError):
    """Objet dont les champs ne peuvent pas être parcourus."""


@dataclass(frozen=True)
class _Member:
    path: str
    name: str
    declared: type
    value: Any
    former_names: tuple[str, ...]


def _former_names(metadata: Mapping[str, Any]) -> tuple[str, ...]:
    raw = metadata.get(FORMER_NAMES_KEY, ())
    if isinstance(raw, str):
        return (raw,)
    return tuple(str(n) for n in raw)


def _members(obj: Any) -> list[tuple[str, Mapping[str, Any]]]:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return [(f.name, f.metadata) for f in dataclasses.fields(obj)]
    attrs = getattr(obj, "__dict__", None)
    if attrs is None:
        raise CaptureError(f"Objet sans champs inspectables: {type(obj).__name__}")
    return [(name, {}) for name in attrs]


def iter_members(obj: Any, prefix: str = "", _path_ids: frozenset[int] | None = None) -> Iterator[_Member]:
    """
    Parcourt les champs publics d'un objet, en profondeur.

    Les noms commençant par ``_`` sont ignorés. Une valeur dataclass dont le
    type d'exécution est exactement le type déclaré est dépliée (chemins
    pointés) ; sinon elle est traitée comme une valeur opaque. Un objet déjà
    présent sur le chemin courant (cycle) n'est pas déplié et reste opaque.
    """
    path_ids = (_path_ids or frozenset()) | {id(obj)}
    hints = field_types(type(obj))
    for name, metadata in _members(obj):
        if name.startswith("_"):
            continue
        value = getattr(obj, name)
        declared = concrete_type(hints.get(name)) or type(value)
        path = f"{prefix}{name}"
        if dataclasses.is_dataclass(value) and type(value) is declared and id(value) not in path_ids:
            yield from iter_members(value, path + ".", path_ids)
            continue
        yield _Member(path, name, declared, value, _former_names(metadata))


def capture(obj: Any, *, codec: ValueCodec | None = None) -> CapturedFieldSet:
    """
    Capture les champs d'un objet source avec leurs valeurs encodées.

    Les valeurs non sérialisables sont conservées comme références.

    Returns:
        CapturedFieldSet, à passer au matching puis au transfert.
    """
    codec = codec or ValueCodec()
    fields: list[FieldDescriptor] = []
    for member in iter_members(obj):
        if codec.can_encode(member.value):
            encoded = codec.encode(member.value)
            refs: tuple[Any, ...] = ()
        else:
            encoded = Encoded(type_tag=type_id(type(member.value)), payload=b"")
            refs = (member.value,)
        fields.append(
            FieldDescriptor(
                path=member.path,
                name=nicify_name(member.name),
                type_id=type_id(member.declared),
                value=encoded,
                references=refs,
                former_names=member.former_names,
            )
        )
    logger.debug("%d champs capturés sur %s", len(fields), type_id(type(obj)))
    return CapturedFieldSet(source_type=type_id(type(obj)), fields=tuple(fields))


def describe_targets(obj: Any) -> list[TargetDescriptor]:
    """Décrit les champs d'un objet cible (sans valeurs)."""
    return [
        TargetDescriptor(path=m.path, name=nicify_name(m.name), type_id=type_id(m.declared))
        for m in iter_members(obj)
    ]
