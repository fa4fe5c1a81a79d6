"""Moteur de linkage : scores par paire, matrice de coûts, affectation."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from fieldconcord.config import FieldConcordError, SolverConfig
from fieldconcord.matching.schema import (
    AliasLookup,
    CapturedFieldSet,
    DefaultMappingLookup,
    FieldDescriptor,
    Match,
    ScoredPair,
    ScoringContext,
    TargetDescriptor,
    TypesCompatible,
)
from fieldconcord.matching.scorers import NOISE_THRESHOLD, score_pair
from fieldconcord.matching.solvers import UNMATCHED, get_solver
from fieldconcord.typesys import TypeCompatibility

logger = logging.getLogger(__name__)


class MatchInputError(FieldConcordError, ValueError):
    """Descripteurs invalides (chemin vide ou dupliqué)."""


def _check_paths(items: Sequence[FieldDescriptor] | Sequence[TargetDescriptor], side: str) -> None:
    seen: set[str] = set()
    for item in items:
        if not item.path:
            raise MatchInputError(f"Chemin vide côté {side} (nom={item.name!r})")
        if item.path in seen:
            raise MatchInputError(f"Chemin dupliqué côté {side}: {item.path!r}")
        seen.add(item.path)


class Linker:
    """Moteur de linkage entre champs source et champs cible."""

    def __init__(
        self,
        solver_config: SolverConfig | None = None,
        *,
        types_compatible: TypesCompatible | None = None,
        alias_lookup: AliasLookup | None = None,
        is_default_mapping: DefaultMappingLookup | None = None,
    ) -> None:
        self.solver_config = solver_config or SolverConfig()
        self.types_compatible = types_compatible or TypeCompatibility()
        self.alias_lookup = alias_lookup
        self.is_default_mapping = is_default_mapping

    def score_all(
        self,
        sources: Sequence[FieldDescriptor],
        targets: Sequence[TargetDescriptor],
        *,
        source_owner_type: str = "",
        target_owner_type: str | None = None,
    ) -> list[ScoredPair]:
        """
        Calcule le score de chaque paire (source, cible).

        Returns:
            Paires dont le score dépasse le seuil de bruit, dans l'ordre (source, cible).
        """
        pairs: list[ScoredPair] = []
        for i, src in enumerate(sources):
            for j, tgt in enumerate(targets):
                ctx = ScoringContext(
                    source=src,
                    target=tgt,
                    source_owner_type=source_owner_type,
                    target_owner_type=target_owner_type,
                    types_compatible=self.types_compatible,
                    alias_lookup=self.alias_lookup,
                    is_default_mapping=self.is_default_mapping,
                )
                score, strategy = score_pair(ctx)
                if score > NOISE_THRESHOLD:
                    pairs.append(ScoredPair(i, j, score, strategy))
        return pairs

    def run(
        self,
        sources: Sequence[FieldDescriptor],
        targets: Sequence[TargetDescriptor],
        *,
        source_owner_type: str = "",
        target_owner_type: str | None = None,
    ) -> list[Match]:
        """
        Exécute le matching complet.

        Returns:
            Liste de Match triée par score décroissant (stable à égalité).

        Raises:
            MatchInputError: Chemin vide ou dupliqué d'un côté.
        """
        _check_paths(sources, "source")
        _check_paths(targets, "cible")

        n, m = len(sources), len(targets)
        scored = self.score_all(
            sources,
            targets,
            source_owner_type=source_owner_type,
            target_owner_type=target_owner_type,
        )
        if not scored:
            logger.info("Aucune paire au-dessus du seuil (%d sources, %d cibles)", n, m)
            return []

        cost = [[math.inf] * m for _ in range(n)]
        by_cell: dict[tuple[int, int], ScoredPair] = {}
        for pair in scored:
            cost[pair.source_index][pair.target_index] = -pair.score
            by_cell[(pair.source_index, pair.target_index)] = pair

        solver = get_solver(self.solver_config)
        assignment = solver.solve(cost, n, m)

        results: list[Match] = []
        for i, j in enumerate(assignment):
            if j == UNMATCHED or not math.isfinite(cost[i][j]):
                continue
            pair = by_cell[(i, j)]
            results.append(Match(sources[i], targets[j], pair.score, pair.strategy))

        results.sort(key=lambda r: r.score, reverse=True)
        logger.info(
            "%d correspondance(s) sur %d sources / %d cibles (%s)",
            len(results),
            n,
            m,
            solver.name,
        )
        return results

    def run_captured(
        self,
        captured: CapturedFieldSet,
        targets: Sequence[TargetDescriptor],
        *,
        target_owner_type: str | None = None,
    ) -> list[Match]:
        """Matching d'un jeu de champs capturés vers des cibles."""
        return self.run(
            captured.fields,
            targets,
            source_owner_type=captured.source_type,
            target_owner_type=target_owner_type,
        )


def match(
    sources: Sequence[FieldDescriptor],
    targets: Sequence[TargetDescriptor],
    alias_lookup: AliasLookup | None,
    is_default_mapping: DefaultMappingLookup | None,
    are_types_compatible: TypesCompatible,
    use_exact_solver: bool = False,
    *,
    source_owner_type: str = "",
    target_owner_type: str | None = None,
) -> list[Match]:
    """Point d'entrée du cœur : matching optimal source → cible, trié par score décroissant."""
    linker = Linker(
        SolverConfig(use_exact_solver=use_exact_solver),
        types_compatible=are_types_compatible,
        alias_lookup=alias_lookup,
        is_default_mapping=is_default_mapping,
    )
    return linker.run(
        sources,
        targets,
        source_owner_type=source_owner_type,
        target_owner_type=target_owner_type,
    )
