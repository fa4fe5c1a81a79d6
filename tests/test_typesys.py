"""Tests des identifiants de types et de la compatibilité."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytest

from fieldconcord.typesys import (
    SchemaIntrospector,
    TypeCompatibility,
    concrete_type,
    is_numeric_widening,
    resolve_type_id,
    type_id,
)


class Animal:
    pass


class Dog(Animal):
    pass


@dataclass
class Stats:
    hp: int = 0
    tags: list[str] = field(default_factory=list)


@dataclass
class Unit:
    name: str = ""
    stats: Stats = field(default_factory=Stats)
    buddy: Optional[Stats] = None


def test_type_id_builtins_and_classes() -> None:
    assert type_id(int) == "int"
    assert type_id(type(None)) == "NoneType"
    assert type_id(Dog) == f"{__name__}.Dog"


def test_resolve_type_id_round_trip() -> None:
    assert resolve_type_id("float") is float
    assert resolve_type_id("NoneType") is type(None)
    assert resolve_type_id(type_id(Unit)) is Unit


@pytest.mark.parametrize("tid", ["", "len", "no.such.module.Thing", f"{__name__}.Missing"])
def test_resolve_type_id_unknown(tid: str) -> None:
    assert resolve_type_id(tid) is None


def test_concrete_type() -> None:
    assert concrete_type(int) is int
    assert concrete_type(list[int]) is list
    assert concrete_type(Optional[Stats]) is Stats
    assert concrete_type(int | str) is None


def test_schema_introspector_nested_path() -> None:
    introspector = SchemaIntrospector()
    assert introspector.resolve_type(Unit, "stats.hp") is int
    assert introspector.resolve_type(Unit, "stats.tags") is list
    assert introspector.resolve_type(Unit, "buddy.hp") is int
    assert introspector.resolve_type(Unit, "stats.missing") is None
    assert introspector.resolve_type_id(type_id(Unit), "name") == "str"


def test_is_numeric_widening() -> None:
    assert is_numeric_widening("int", "float")
    assert is_numeric_widening("float", "int")
    assert not is_numeric_widening("int", "int")
    assert not is_numeric_widening("int", "str")


def test_type_compatibility_rules() -> None:
    compat = TypeCompatibility()
    assert compat("int", "int")
    assert not compat("int", "float")
    assert compat("int", "float", True)
    assert compat(type_id(Dog), type_id(Animal))
    assert not compat(type_id(Animal), type_id(Dog))
    assert compat("bool", "int")
    assert not compat("", "int")
    assert not compat("game.Unknown", "game.Other")


def test_type_compatibility_registry() -> None:
    compat = TypeCompatibility({"Dog": Dog, "Animal": Animal})
    assert compat("Dog", "Animal")
    assert not compat("Animal", "Dog")


@pytest.mark.parametrize("tid", [".Vector3", "game..Unit", "game."])
def test_resolve_type_id_malformed(tid: str) -> None:
    assert resolve_type_id(tid) is None
    assert TypeCompatibility()(tid, "float") is False


@pytest.fixture
def failing_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Module importable qui lève une erreur non ImportError à l'import."""
    name = "fieldconcord_failing_settings"
    (tmp_path / f"{name}.py").write_text('raise RuntimeError("settings not configured")\n', encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, name, raising=False)
    return name


def test_resolve_type_id_module_failing_on_import(failing_module: str) -> None:
    assert resolve_type_id(f"{failing_module}.Thing") is None


def test_type_compatibility_does_not_import(failing_module: str) -> None:
    compat = TypeCompatibility()
    assert compat(f"{failing_module}.Thing", "float") is False
    assert failing_module not in sys.modules
