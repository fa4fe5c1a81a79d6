"""Similarité de noms par distance d'édition normalisée."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def similarity(s: str, t: str) -> float:
    """
    Similarité de Levenshtein normalisée entre deux noms.

    ``1 - distance(s, t) / max(len(s), len(t))`` ; 1.0 si les chaînes sont
    identiques (y compris deux chaînes vides), 0.0 si une seule est vide.

    Returns:
        Score entre 0 et 1, symétrique.
    """
    if not s and not t:
        return 1.0  # Les deux vides = identiques
    if not s or not t:
        return 0.0
    distance = Levenshtein.distance(s, t)
    return 1.0 - distance / max(len(s), len(t))
