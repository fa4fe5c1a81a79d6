"""Calcul des scores de compatibilité entre champ source et champ cible."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fieldconcord.matching.schema import ScoringContext
from fieldconcord.matching.similarity import similarity
from fieldconcord.normalize import same_name

logger = logging.getLogger(__name__)

# Les paires à ce score ou en dessous n'entrent pas dans le problème d'affectation.
NOISE_THRESHOLD = 0.1
MAX_FUZZY_SCORE = 0.99

Strategy = Callable[[ScoringContext], Optional[float]]


def _score_if_compatible(
    ctx: ScoringContext,
    condition: bool,
    compatible_score: float,
    incompatible_score: float,
    *,
    allow_numeric_widening: bool = False,
    full_score_if_same_owner: bool = False,
) -> float | None:
    """Score à deux niveaux selon la compatibilité de types ; None si la condition échoue."""
    if not condition:
        return None
    if not ctx.compatible(allow_numeric_widening):
        return incompatible_score
    if full_score_if_same_owner and ctx.same_owner_type:
        return 1.0
    return compatible_score


def score_exact_path(ctx: ScoringContext) -> float | None:
    # Chemins identiques => types identiques
    return 1.0 if ctx.source.path == ctx.target.path else None


def score_exact_name(ctx: ScoringContext) -> float | None:
    return _score_if_compatible(
        ctx,
        same_name(ctx.source.name, ctx.target.name),
        0.98,
        0.90,
        full_score_if_same_owner=True,
    )


def score_user_alias(ctx: ScoringContext) -> float | None:
    if ctx.alias_lookup is None:
        return None
    taught = ctx.alias_lookup(ctx.source_owner_type, ctx.source.name)
    return _score_if_compatible(
        ctx,
        taught is not None and same_name(taught, ctx.target.name),
        0.95,
        0.75,
        allow_numeric_widening=True,
    )


def score_default_mapping(ctx: ScoringContext) -> float | None:
    if ctx.is_default_mapping is None:
        return None
    return _score_if_compatible(
        ctx,
        ctx.is_default_mapping(ctx.source.name, ctx.target.name),
        0.92,
        0.70,
        allow_numeric_widening=True,
    )


def score_former_name(ctx: ScoringContext) -> float | None:
    former = ctx.source.former_names
    hit = ctx.target.bare_name in former or any(ctx.target.path.endswith(n) for n in former if n)
    return _score_if_compatible(ctx, hit, 0.90, 0.65)


def score_name_similarity(ctx: ScoringContext) -> float:
    """
    Dernier recours, ne décline jamais.

    80 % de la similarité des noms, +0.10 si types compatibles, sinon le
    score est réduit à 10 %. Plafonné à 0.99 : seul un chemin identique
    donne 1.0.
    """
    score = similarity(ctx.source.name, ctx.target.name) * 0.80
    if ctx.compatible():
        score += 0.10
    else:
        score *= 0.10
    return min(score, MAX_FUZZY_SCORE)


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("exact_path", score_exact_path),
    ("exact_name", score_exact_name),
    ("user_alias", score_user_alias),
    ("default_mapping", score_default_mapping),
    ("former_name", score_former_name),
    ("name_similarity", score_name_similarity),
)


def score_pair(
    ctx: ScoringContext,
    strategies: tuple[tuple[str, Strategy], ...] = STRATEGIES,
) -> tuple[float, str]:
    """
    Évalue les stratégies dans l'ordre ; la première qui répond l'emporte.

    Une stratégie qui lève une exception (ex. via un lookup injecté) est
    considérée comme sans réponse et la chaîne continue. Si aucune ne
    répond après une erreur, la paire vaut 0.0.

    Returns:
        (score, nom de la stratégie) ; ``"error"`` ou ``"none"`` si aucune réponse.
    """
    failed = False
    for name, strategy in strategies:
        try:
            score = strategy(ctx)
        except Exception as e:
            logger.warning(
                "Stratégie %s en échec pour %s -> %s: %s",
                name,
                ctx.source.path,
                ctx.target.path,
                e,
            )
            failed = True
            continue
        if score is not None:
            return score, name
    return 0.0, ("error" if failed else "none")
