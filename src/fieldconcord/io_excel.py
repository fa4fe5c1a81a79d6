"""I/O tableurs : tables de champs (Excel, ODS, CSV) et sauvegarde xlsx."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pandas as pd

from fieldconcord.codec import CodecError, Encoded
from fieldconcord.config import FieldConcordError
from fieldconcord.matching.schema import FieldDescriptor, TargetDescriptor
from fieldconcord.normalize import bare_name, nicify_name

SUPPORTED_INPUT_EXTENSIONS = (".xlsx", ".xls", ".ods", ".csv")

REQUIRED_COLUMNS = ("path", "type")
FORMER_NAMES_SEPARATOR = ";"


class ExcelFileError(FieldConcordError):
    """Erreur de chargement d'un fichier (fichier absent, feuille inexistante)."""


class FieldTableError(FieldConcordError, ValueError):
    """Table de champs invalide (colonne requise absente, chemin vide)."""


def _get_engine(path: Path) -> str | None:
    """Retourne le moteur pandas selon l'extension, ou None pour auto."""
    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        return "openpyxl"
    if suffix == ".xls":
        return "xlrd"
    if suffix in (".ods", ".odt"):
        return "odf"
    return None


def _is_csv(path: Path) -> bool:
    return path.suffix.lower() == ".csv"


def _detect_csv_delimiter(path: Path, encoding: str) -> str | None:
    try:
        with path.open("r", encoding=encoding, errors="replace") as f:
            sample_lines: list[str] = []
            for line in f:
                if line.strip() == "":
                    continue
                sample_lines.append(line)
                if len(sample_lines) >= 5:
                    break
    except OSError:
        return None
    if not sample_lines:
        return None
    sample = "".join(sample_lines)
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=[",", ";", "\t", "|"])
        return dialect.delimiter
    except csv.Error:
        first = sample_lines[0]
        counts = {d: first.count(d) for d in [",", ";", "\t", "|"]}
        best = max(counts, key=lambda d: counts[d])
        return best if counts[best] > 0 else None


def list_sheets(filepath: str | Path) -> list[str]:
    """
    Liste les noms des feuilles d'un fichier tableur.

    Raises:
        ExcelFileError: Si le fichier est absent ou illisible.
    """
    path = Path(filepath)
    if not path.exists():
        raise ExcelFileError(f"Fichier introuvable: {path}")
    if _is_csv(path):
        return ["(données)"]
    try:
        engine = _get_engine(path)
        xl = pd.ExcelFile(path, engine=engine) if engine else pd.ExcelFile(path)
        return [str(s) for s in xl.sheet_names]
    except ImportError as e:
        raise ExcelFileError(f"Moteur manquant pour {path.suffix}: {e}") from e
    except Exception as e:
        raise ExcelFileError(f"Impossible de lire le fichier {path}: {e}") from e


def load_sheet(filepath: str | Path, sheet_name: str | None = None) -> pd.DataFrame:
    """
    Charge une feuille dans un DataFrame en préservant le texte (dtype=str).

    Args:
        filepath: Chemin vers le fichier (.xlsx, .xls, .ods, .csv).
        sheet_name: Nom de la feuille (None = première). Ignoré pour CSV.

    Raises:
        ExcelFileError: Fichier absent, illisible ou feuille inexistante.
    """
    path = Path(filepath)
    if not path.exists():
        raise ExcelFileError(f"Fichier introuvable: {path}")

    if _is_csv(path):
        for encoding in ("utf-8", "latin-1"):
            try:
                delimiter = _detect_csv_delimiter(path, encoding) or ","
                return pd.read_csv(path, dtype=str, encoding=encoding, sep=delimiter)
            except UnicodeDecodeError:
                continue
            except Exception as e:
                raise ExcelFileError(f"Erreur CSV {path}: {e}") from e
        raise ExcelFileError(f"Encodage CSV non reconnu: {path}")

    try:
        engine = _get_engine(path)
        xl = pd.ExcelFile(path, engine=engine) if engine else pd.ExcelFile(path)
    except ImportError as e:
        raise ExcelFileError(f"Moteur manquant pour {path.suffix}: {e}") from e
    except Exception as e:
        raise ExcelFileError(f"Impossible de lire le fichier {path}: {e}") from e

    if sheet_name is None:
        sheet_name = str(xl.sheet_names[0])
    elif sheet_name not in xl.sheet_names:
        sheets = [str(s) for s in xl.sheet_names]
        raise ExcelFileError(f"Feuille '{sheet_name}' introuvable dans {path}. Feuilles: {', '.join(sheets)}")

    try:
        return pd.read_excel(xl, sheet_name=sheet_name, dtype=str)
    except Exception as e:
        raise ExcelFileError(f"Erreur feuille '{sheet_name}' dans {path}: {e}") from e


def save_xlsx(filepath: str | Path, dataframes: dict[str, pd.DataFrame]) -> None:
    """
    Sauvegarde plusieurs DataFrames dans un fichier xlsx (une feuille par DataFrame).

    Args:
        filepath: Chemin de sortie.
        dataframes: Dict {nom_feuille: DataFrame}.
    """
    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        for sheet_name, df in dataframes.items():
            # Excel limite les noms de feuille à 31 caractères
            safe_name = str(sheet_name)[:31]
            df.to_excel(writer, sheet_name=safe_name, index=False)


def _cell(row: pd.Series, col: str) -> str:
    if col not in row.index:
        return ""
    val = row[col]
    if pd.isna(val):
        return ""
    return str(val).strip()


def _check_columns(df: pd.DataFrame, required: tuple[str, ...]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise FieldTableError(f"Colonnes requises absentes: {', '.join(missing)}")


def _encode_cell(text: str, row_idx: int) -> Encoded | None:
    if not text:
        return None
    if text.startswith("{") and '"$type"' in text:
        try:
            return Encoded.from_json(text)
        except CodecError as e:
            raise FieldTableError(f"Ligne {row_idx + 1}: valeur encodée invalide: {e}") from e
    # Valeur brute : conservée comme texte, convertie au type cible au transfert
    return Encoded(type_tag="str", payload=json.dumps(text, ensure_ascii=False).encode("utf-8"))


def fields_from_df(df: pd.DataFrame) -> list[FieldDescriptor]:
    """
    Construit les descripteurs source depuis une table.

    Colonnes : ``path`` et ``type`` requises ; ``name``, ``value`` et
    ``former_names`` (séparées par ``;``) optionnelles.

    Raises:
        FieldTableError: Colonne requise absente ou chemin vide.
    """
    _check_columns(df, REQUIRED_COLUMNS)
    fields: list[FieldDescriptor] = []
    for idx in range(len(df)):
        row = df.iloc[idx]
        path = _cell(row, "path")
        if not path:
            raise FieldTableError(f"Ligne {idx + 1}: chemin vide")
        former = tuple(n.strip() for n in _cell(row, "former_names").split(FORMER_NAMES_SEPARATOR) if n.strip())
        fields.append(
            FieldDescriptor(
                path=path,
                name=_cell(row, "name") or nicify_name(bare_name(path)),
                type_id=_cell(row, "type"),
                value=_encode_cell(_cell(row, "value"), idx),
                former_names=former,
            )
        )
    return fields


def targets_from_df(df: pd.DataFrame) -> list[TargetDescriptor]:
    """Construit les descripteurs cible depuis une table (``path``, ``type``, ``name`` optionnel)."""
    _check_columns(df, REQUIRED_COLUMNS)
    targets: list[TargetDescriptor] = []
    for idx in range(len(df)):
        row = df.iloc[idx]
        path = _cell(row, "path")
        if not path:
            raise FieldTableError(f"Ligne {idx + 1}: chemin vide")
        targets.append(
            TargetDescriptor(
                path=path,
                name=_cell(row, "name") or nicify_name(bare_name(path)),
                type_id=_cell(row, "type"),
            )
        )
    return targets
