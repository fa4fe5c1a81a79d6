"""Encodage des valeurs de champs : union étiquetée {type_tag, payload}."""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from fieldconcord.config import FieldConcordError
from fieldconcord.typesys import field_types, resolve_type_id, type_id

logger = logging.getLogger(__name__)

Factory = Callable[[Any], Any]


class CodecError(FieldConcordError):
    """Erreur d'encodage ou de décodage d'une valeur."""


@dataclass(frozen=True)
class Encoded:
    """Valeur encodée : étiquette du type d'exécution + charge utile JSON (octets)."""

    type_tag: str
    payload: bytes

    def to_json(self) -> str:
        """Forme filaire polymorphe : ``{"$type": tag, "data": ...}``."""
        data = json.loads(self.payload.decode("utf-8")) if self.payload else None
        return json.dumps({"$type": self.type_tag, "data": data}, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> Encoded:
        try:
            wrapper = json.loads(text)
        except json.JSONDecodeError as e:
            raise CodecError(f"JSON invalide pour une valeur encodée: {e}") from e
        if not isinstance(wrapper, dict) or "$type" not in wrapper:
            raise CodecError("Valeur encodée sans étiquette '$type'")
        payload = json.dumps(wrapper.get("data"), ensure_ascii=False).encode("utf-8")
        return cls(type_tag=str(wrapper["$type"]), payload=payload)


def _to_plain(value: Any, _active: frozenset[int] = frozenset()) -> Any:
    """Convertit une valeur en structure JSON, ou lève TypeError si impossible."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if id(value) in _active:
        raise TypeError(f"référence circulaire: {type(value).__name__}")
    active = _active | {id(value)}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_plain(getattr(value, f.name), active) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v, active) for v in value]
    if isinstance(value, dict):
        return {str(k): _to_plain(v, active) for k, v in value.items()}
    raise TypeError(f"valeur non encodable: {type(value).__name__}")


class ValueCodec:
    """
    Codec à fabriques indexées par étiquette de type.

    Les types natifs JSON sont décodés directement ; les dataclasses sont
    reconstruites via leur constructeur ; d'autres types peuvent être
    enregistrés avec :meth:`register`.
    """

    def __init__(self) -> None:
        self._factories: dict[str, Factory] = {
            "int": int,
            "float": float,
            "str": str,
            "bool": bool,
            "NoneType": lambda data: None,
            "list": list,
            "tuple": tuple,
            "dict": dict,
        }

    def register(self, tag: str, factory: Factory) -> None:
        self._factories[tag] = factory

    def can_encode(self, value: Any) -> bool:
        try:
            _to_plain(value)
        except TypeError:
            return False
        return True

    def encode(self, value: Any) -> Encoded:
        """
        Encode une valeur avec l'étiquette de son type d'exécution.

        Raises:
            CodecError: Si la valeur n'est pas sérialisable.
        """
        try:
            data = _to_plain(value)
        except TypeError as e:
            raise CodecError(str(e)) from e
        payload = json.dumps(data, ensure_ascii=False).encode("utf-8")
        return Encoded(type_tag=type_id(type(value)), payload=payload)

    def decode(self, encoded: Encoded) -> Any:
        """
        Décode une valeur via la fabrique associée à son étiquette.

        Raises:
            CodecError: Étiquette inconnue ou charge utile invalide.
        """
        try:
            data = json.loads(encoded.payload.decode("utf-8")) if encoded.payload else None
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CodecError(f"Charge utile invalide pour {encoded.type_tag}: {e}") from e

        factory = self._factories.get(encoded.type_tag)
        if factory is None:
            factory = self._dataclass_factory(encoded.type_tag)
        if factory is None:
            raise CodecError(f"Type inconnu: {encoded.type_tag}")
        try:
            return factory(data)
        except (TypeError, ValueError) as e:
            raise CodecError(f"Décodage impossible pour {encoded.type_tag}: {e}") from e

    def _dataclass_factory(self, tag: str) -> Factory | None:
        cls = resolve_type_id(tag)
        if cls is None or not dataclasses.is_dataclass(cls):
            return None
        logger.debug("Fabrique dataclass résolue pour %s", tag)
        return lambda data: _build_dataclass(cls, data)


def _build_dataclass(cls: type, data: Any) -> Any:
    if not isinstance(data, dict):
        raise TypeError(f"objet attendu pour {cls.__name__}")
    hints = field_types(cls)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if f.name not in data:
            continue
        val = data[f.name]
        hint = hints.get(f.name)
        if isinstance(val, dict) and isinstance(hint, type) and dataclasses.is_dataclass(hint):
            val = _build_dataclass(hint, val)
        kwargs[f.name] = val
    return cls(**kwargs)
