"""Identifiants de types, introspection de schéma et compatibilité de types."""

from __future__ import annotations

import builtins
import dataclasses
import importlib
import logging
import sys
import types
import typing
from typing import Any

logger = logging.getLogger(__name__)

NUMERIC_TYPE_IDS = frozenset({"int", "float"})


def type_id(tp: type) -> str:
    """
    Identifiant stable d'un type : ``int`` pour les natifs, ``module.QualName`` sinon.
    """
    module = getattr(tp, "__module__", "builtins")
    qualname = getattr(tp, "__qualname__", getattr(tp, "__name__", repr(tp)))
    if module == "builtins":
        return qualname
    return f"{module}.{qualname}"


def resolve_type_id(tid: str, *, allow_import: bool = True) -> type | None:
    """
    Résout un identifiant produit par :func:`type_id` en classe Python.

    Args:
        tid: Identifiant de type.
        allow_import: Importer le module s'il n'est pas déjà chargé. Sinon
            seuls les modules présents dans ``sys.modules`` sont consultés.

    Returns:
        La classe, ou None si l'identifiant est mal formé, ou si le module ou
        l'attribut est introuvable. Ne lève jamais d'exception.
    """
    if not tid:
        return None
    if tid == "NoneType":
        return type(None)
    if "." not in tid:
        found = getattr(builtins, tid, None)
        return found if isinstance(found, type) else None

    parts = tid.split(".")
    if not all(parts):
        return None
    # Le qualname peut contenir des points (classes imbriquées) : on essaie
    # le module le plus long d'abord.
    for cut in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:cut])
        obj: Any = sys.modules.get(module_name)
        if obj is None:
            if not allow_import:
                continue
            try:
                obj = importlib.import_module(module_name)
            except ImportError:
                continue
            except Exception as e:
                # Module présent mais qui échoue à l'import
                logger.debug("Import impossible de %s: %s", module_name, e)
                return None
        try:
            for attr in parts[cut:]:
                obj = getattr(obj, attr)
        except AttributeError:
            return None
        return obj if isinstance(obj, type) else None
    return None


def concrete_type(hint: Any) -> type | None:
    """
    Réduit une annotation à une classe concrète.

    ``int`` → int, ``list[int]`` → list, ``Optional[Stats]`` → Stats ; les
    unions à plusieurs membres non-None ne sont pas résolues.
    """
    if isinstance(hint, type) and not typing.get_args(hint):
        return hint
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        members = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(members) == 1:
            return concrete_type(members[0])
        return None
    if isinstance(origin, type):
        return origin
    return None


def field_types(cls: type) -> dict[str, Any]:
    """Annotations résolues d'une classe (dataclass ou classe annotée)."""
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        logger.debug("Annotations non résolues pour %s: %s", type_id(cls), e)
        if dataclasses.is_dataclass(cls):
            return {f.name: f.type for f in dataclasses.fields(cls)}
        return dict(getattr(cls, "__annotations__", {}))


class SchemaIntrospector:
    """Associe un chemin de champ pointé à son type déclaré, sans schéma statique."""

    def resolve_type(self, owner_type: type | str, path: str) -> type | None:
        owner = resolve_type_id(owner_type) if isinstance(owner_type, str) else owner_type
        current: type | None = owner
        for part in path.split("."):
            if current is None:
                return None
            hint = field_types(current).get(part)
            if hint is None:
                return None
            current = concrete_type(hint)
        return current

    def resolve_type_id(self, owner_type: type | str, path: str) -> str | None:
        tp = self.resolve_type(owner_type, path)
        return type_id(tp) if tp is not None else None


def is_numeric_widening(source_type: str, target_type: str) -> bool:
    """Paire float↔int, dans un sens ou dans l'autre."""
    return source_type != target_type and {source_type, target_type} <= NUMERIC_TYPE_IDS


class TypeCompatibility:
    """
    Prédicat de compatibilité par défaut pour les types Python.

    Compatible si : identifiants égaux, type cible ancêtre du type source, ou
    paire numérique int/float quand l'élargissement est autorisé. Un type
    non résolu est incompatible ; le prédicat ne lève jamais d'exception.

    Les identifiants sont résolus par le registre puis par les modules déjà
    chargés : aucun import n'a lieu pendant le scoring.
    """

    def __init__(self, registry: dict[str, type] | None = None) -> None:
        self.registry = dict(registry or {})

    def resolve(self, tid: str) -> type | None:
        if tid in self.registry:
            return self.registry[tid]
        return resolve_type_id(tid, allow_import=False)

    def __call__(self, source_type: str, target_type: str, allow_numeric_widening: bool = False) -> bool:
        if not source_type or not target_type:
            return False
        if source_type == target_type:
            return True
        if allow_numeric_widening and is_numeric_widening(source_type, target_type):
            return True
        src = self.resolve(source_type)
        dst = self.resolve(target_type)
        if src is None or dst is None:
            return False
        if src is dst:
            return True
        try:
            return issubclass(src, dst)
        except TypeError:
            return False
