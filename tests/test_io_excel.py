"""Tests du module I/O Excel et des tables de champs."""

from pathlib import Path

import pandas as pd
import pytest

from fieldconcord.codec import Encoded, ValueCodec
from fieldconcord.io_excel import (
    FieldTableError,
    fields_from_df,
    list_sheets,
    load_sheet,
    save_xlsx,
    targets_from_df,
)


def test_list_sheets(tmp_path: Path) -> None:
    path = tmp_path / "test.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        pd.DataFrame({"path": ["a"]}).to_excel(w, sheet_name="Player", index=False)
        pd.DataFrame({"path": ["b"]}).to_excel(w, sheet_name="Enemy", index=False)
    sheets = list_sheets(path)
    assert "Player" in sheets
    assert "Enemy" in sheets


def test_list_sheets_csv(tmp_path: Path) -> None:
    path = tmp_path / "fields.csv"
    path.write_text("path,type\nspeed,float\n", encoding="utf-8")
    assert list_sheets(path) == ["(données)"]


def test_load_sheet_default_first(tmp_path: Path) -> None:
    path = tmp_path / "test.xlsx"
    pd.DataFrame({"path": ["speed", "health"], "type": ["float", "int"]}).to_excel(path, index=False, engine="openpyxl")
    df = load_sheet(path)
    assert len(df) == 2
    assert list(df.columns) == ["path", "type"]


def test_load_sheet_csv_semicolon(tmp_path: Path) -> None:
    path = tmp_path / "fields.csv"
    path.write_text("path;type;name\nspeed;float;Speed\nhealth;int;Health\n", encoding="utf-8")
    df = load_sheet(path)
    assert list(df.columns) == ["path", "type", "name"]
    assert df.iloc[1]["name"] == "Health"


def test_load_sheet_csv_latin1(tmp_path: Path) -> None:
    path = tmp_path / "fields.csv"
    path.write_bytes("path,type,name\nvitesse,float,Vitesse éclair\n".encode("latin-1"))
    df = load_sheet(path)
    assert df.iloc[0]["name"] == "Vitesse éclair"


def test_save_xlsx(tmp_path: Path) -> None:
    path = tmp_path / "out.xlsx"
    save_xlsx(path, {"Matches": pd.DataFrame({"a": [1]}), "REPORT": pd.DataFrame({"b": [2]})})
    xl = pd.ExcelFile(path, engine="openpyxl")
    assert xl.sheet_names == ["Matches", "REPORT"]
    xl.close()


def test_fields_from_df() -> None:
    df = pd.DataFrame(
        {
            "path": ["speed", "stats.max_hp", "level"],
            "type": ["float", "int", "int"],
            "name": ["Speed", None, "Level"],
            "value": ["7.5", '{"$type": "int", "data": 40}', None],
            "former_names": [None, "hp; health", ""],
        }
    )
    fields = fields_from_df(df)
    codec = ValueCodec()

    assert [f.path for f in fields] == ["speed", "stats.max_hp", "level"]
    assert fields[1].name == "Max Hp"
    assert fields[1].former_names == ("hp", "health")
    assert fields[0].value == Encoded("str", b'"7.5"')
    assert codec.decode(fields[1].value) == 40
    assert fields[2].value is None


def test_fields_from_df_minimal_columns() -> None:
    fields = fields_from_df(pd.DataFrame({"path": ["m_moveSpeed"], "type": ["float"]}))
    assert fields[0].name == "Move Speed"
    assert fields[0].former_names == ()


def test_fields_from_df_empty_path() -> None:
    df = pd.DataFrame({"path": ["speed", None], "type": ["float", "int"]})
    with pytest.raises(FieldTableError, match="Ligne 2: chemin vide"):
        fields_from_df(df)


def test_fields_from_df_bad_encoded_value() -> None:
    df = pd.DataFrame({"path": ["speed"], "type": ["float"], "value": ['{"$type": "float", ']})
    with pytest.raises(FieldTableError, match="valeur encodée invalide"):
        fields_from_df(df)


def test_targets_from_df() -> None:
    df = pd.DataFrame({"path": ["velocity", "stats.hit_points"], "type": ["float", "int"]})
    targets = targets_from_df(df)
    assert [(t.path, t.name, t.type_id) for t in targets] == [
        ("velocity", "Velocity", "float"),
        ("stats.hit_points", "Hit Points", "int"),
    ]


def test_targets_from_df_missing_columns() -> None:
    with pytest.raises(FieldTableError, match="path, type"):
        targets_from_df(pd.DataFrame({"name": ["Velocity"]}))
