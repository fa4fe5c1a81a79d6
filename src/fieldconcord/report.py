"""Génération du rapport, de l'onglet REPORT et de mapping.csv."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

import pandas as pd

from fieldconcord import __version__
from fieldconcord.config import SolverConfig
from fieldconcord.matching.schema import FieldDescriptor, Match, TargetDescriptor

MATCH_COLUMNS = ["source_path", "source_name", "target_path", "target_name", "score", "strategy"]


def build_matches_df(matches: Sequence[Match]) -> pd.DataFrame:
    """Une ligne par correspondance, dans l'ordre reçu (score décroissant)."""
    rows = [
        {
            "source_path": m.source.path,
            "source_name": m.source.name,
            "target_path": m.target.path,
            "target_name": m.target.name,
            "score": round(m.score, 4),
            "strategy": m.strategy,
        }
        for m in matches
    ]
    return pd.DataFrame(rows, columns=MATCH_COLUMNS)


def _counts(
    matches: Sequence[Match],
    sources: Sequence[FieldDescriptor],
    targets: Sequence[TargetDescriptor],
) -> dict[str, int]:
    matched_src = {m.source.path for m in matches}
    matched_tgt = {m.target.path for m in matches}
    by_strategy: dict[str, int] = {}
    for m in matches:
        by_strategy[m.strategy] = by_strategy.get(m.strategy, 0) + 1
    counts = {
        "nb_sources": len(sources),
        "nb_targets": len(targets),
        "nb_matches": len(matches),
        "nb_unmatched_sources": sum(1 for s in sources if s.path not in matched_src),
        "nb_unmatched_targets": sum(1 for t in targets if t.path not in matched_tgt),
    }
    for name in sorted(by_strategy):
        counts[f"nb_{name}"] = by_strategy[name]
    return counts


def build_report_df(
    matches: Sequence[Match],
    sources: Sequence[FieldDescriptor],
    targets: Sequence[TargetDescriptor],
    solver_config: SolverConfig,
    *,
    nb_candidates: int | None = None,
) -> pd.DataFrame:
    """
    Construit le DataFrame pour l'onglet REPORT.

    Contient : nb sources, nb cibles, nb paires candidates (au-dessus du
    seuil de bruit, si fourni), nb correspondances, non appariés,
    répartition par stratégie, solveur, horodatage, version.
    """
    rows: list[tuple[str, object]] = [("Metric", "Value")]
    counts = _counts(matches, sources, targets)
    if nb_candidates is not None:
        counts = {"nb_candidates": nb_candidates, **counts}
    rows.extend(counts.items())
    rows.extend(
        [
            ("", ""),
            ("Parameters", ""),
            ("solver", solver_config.solver_name),
            ("", ""),
            ("timestamp", datetime.now().isoformat()),
            ("version", __version__),
        ]
    )
    return pd.DataFrame(rows, columns=["Key", "Value"])


def build_mapping_csv(matches: Sequence[Match], output_path: str) -> None:
    """Génère mapping.csv avec source_path, target_path, score, strategy."""
    df = build_matches_df(matches)
    df.to_csv(output_path, index=False, encoding="utf-8")


def print_report_console(
    matches: Sequence[Match],
    sources: Sequence[FieldDescriptor],
    targets: Sequence[TargetDescriptor],
    solver_config: SolverConfig,
) -> None:
    """Affiche les correspondances et un résumé en console."""
    counts = _counts(matches, sources, targets)

    print(f"\nCorrespondances ({solver_config.solver_name}):")
    for m in matches:
        print(f"  {m.source.name}  →  {m.target.name}  {m.score * 100:.1f}%  [{m.strategy}]")

    print("\n=== FieldConcord Report ===")
    print(f"  Champs source:         {counts['nb_sources']}")
    print(f"  Champs cible:          {counts['nb_targets']}")
    print(f"  Correspondances:       {counts['nb_matches']}")
    print(f"  Sources non appariées: {counts['nb_unmatched_sources']}")
    print(f"  Cibles non appariées:  {counts['nb_unmatched_targets']}")
    print(f"  Version:               {__version__}")
    print(f"  Timestamp:             {datetime.now().isoformat()}")
    print("===========================\n")
