"""Tests du magasin d'alias et de la table de synonymes."""

import json
from pathlib import Path

import pytest

from fieldconcord.aliases import AliasMapping, AliasStore, AliasStoreError, DefaultMappings


def test_load_missing_file_is_empty(tmp_path: Path) -> None:
    store = AliasStore.load(tmp_path / "absent.json")
    assert len(store) == 0
    assert store.lookup("Player", "Dmg") is None


def test_add_save_reload(tmp_path: Path) -> None:
    path = tmp_path / "sub" / "aliases.json"
    store = AliasStore(path)
    store.add_alias("Player", "Dmg", "Attack Power")
    store.save()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {"aliases": [{"source_type": "Player", "source_field": "Dmg", "target_field": "Attack Power"}]}

    reloaded = AliasStore.load(path)
    assert reloaded.lookup("player", "DMG") == "Attack Power"
    assert reloaded.has_alias("Player", "Dmg", "attack power")


def test_add_alias_replaces_previous() -> None:
    store = AliasStore()
    store.add_alias("Player", "Dmg", "Attack")
    store.add_alias("player", "dmg", "Power")
    assert len(store) == 1
    assert store.lookup("Player", "Dmg") == "Power"


def test_lookup_is_scoped_by_owner_type() -> None:
    store = AliasStore(aliases=[AliasMapping("Player", "Dmg", "Attack")])
    assert store.lookup("Enemy", "Dmg") is None


def test_remove_alias() -> None:
    store = AliasStore(aliases=[AliasMapping("Player", "Dmg", "Attack")])
    assert store.remove_alias("PLAYER", "dmg") is True
    assert store.remove_alias("Player", "Dmg") is False
    assert len(store) == 0


def test_save_without_path() -> None:
    with pytest.raises(AliasStoreError, match="Aucun chemin"):
        AliasStore().save()


def test_load_invalid_structure(tmp_path: Path) -> None:
    path = tmp_path / "aliases.json"
    path.write_text('{"aliases": {"a": 1}}', encoding="utf-8")
    with pytest.raises(AliasStoreError, match="Fichier d'alias invalide"):
        AliasStore.load(path)


def test_load_invalid_entry(tmp_path: Path) -> None:
    path = tmp_path / "aliases.json"
    path.write_text('{"aliases": [{"source_type": "Player"}]}', encoding="utf-8")
    with pytest.raises(AliasStoreError, match="Entrée d'alias invalide"):
        AliasStore.load(path)


@pytest.mark.parametrize(
    "source,target",
    [
        ("Speed", "Velocity"),
        ("Velocity", "Speed"),
        ("Move Speed", "speed"),
        ("Health", "HP"),
        ("hit_points", "Life"),
        ("Team Color", "Faction Color"),
    ],
)
def test_builtin_default_mappings(source: str, target: str) -> None:
    assert DefaultMappings().is_default_mapping(source, target)


def test_default_mappings_symmetric_for_custom_groups() -> None:
    mappings = DefaultMappings({"Mana": ["Energy"]}, include_builtin=False)
    assert mappings("Mana", "Energy")
    assert mappings("energy", "mana")
    assert not mappings("Speed", "Velocity")


def test_default_mappings_not_reflexive() -> None:
    mappings = DefaultMappings()
    assert not mappings("Speed", "Speed")
    assert not mappings("Speed", "Title")


def test_synonyms() -> None:
    mappings = DefaultMappings({"Mana": ["Energy", "MP"]}, include_builtin=False)
    assert mappings.synonyms("MANA") == ["energy", "mp"]
    assert mappings.synonyms("unknown") == []
