"""Normalisation des noms de champs."""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_MEMBER_PREFIXES = ("m_", "_")


def norm_text(
    s: str | float | int | None,
    *,
    lower: bool = True,
    strip: bool = True,
) -> str:
    """
    Normalise un texte : NFKC, espaces multiples → espace simple, lower, strip.

    Args:
        s: Valeur à normaliser (convertie en str si numérique).
        lower: Mettre en minuscules (casefold).
        strip: Supprimer espaces en début/fin.

    Returns:
        Chaîne normalisée.
    """
    if s is None or (isinstance(s, float) and (s != s or s == float("inf"))):
        return ""
    text = str(s).strip() if strip else str(s)
    text = unicodedata.normalize("NFKC", text)
    text = re.sub(r"\s+", " ", text)
    if strip:
        text = text.strip()
    if lower:
        text = text.casefold()
    return text


def same_name(a: str, b: str) -> bool:
    """Égalité de noms insensible à la casse."""
    return norm_text(a) == norm_text(b)


def bare_name(path: str) -> str:
    """Dernier segment d'un chemin pointé (``stats.max_hp`` → ``max_hp``)."""
    return path.rsplit(".", 1)[-1]


def nicify_name(member: str) -> str:
    """
    Construit un nom d'affichage à partir d'un nom de membre.

    ``m_moveSpeed`` → ``Move Speed``, ``max_hp`` → ``Max Hp``, ``HP`` → ``HP``.
    """
    name = member
    for prefix in _MEMBER_PREFIXES:
        if name.startswith(prefix) and len(name) > len(prefix):
            name = name[len(prefix):]
            break
    name = name.replace("_", " ")
    name = _CAMEL_BOUNDARY.sub(" ", name)
    words = [w for w in name.split(" ") if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def safe_str(val: Any) -> str:
    """Convertit une valeur en chaîne pour affichage/stockage."""
    if val is None or (isinstance(val, float) and (val != val or val == float("inf"))):
        return ""
    return str(val)
