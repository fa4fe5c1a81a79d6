"""Module de matching : scores, solveurs d'affectation et linkage."""

from fieldconcord.matching.linker import Linker, MatchInputError, match
from fieldconcord.matching.schema import (
    CapturedFieldSet,
    FieldDescriptor,
    Match,
    ScoredPair,
    ScoringContext,
    TargetDescriptor,
)
from fieldconcord.matching.similarity import similarity
from fieldconcord.matching.solvers import GreedySolver, HungarianSolver, get_solver

__all__ = [
    "CapturedFieldSet",
    "FieldDescriptor",
    "GreedySolver",
    "HungarianSolver",
    "Linker",
    "Match",
    "MatchInputError",
    "ScoredPair",
    "ScoringContext",
    "TargetDescriptor",
    "get_solver",
    "match",
    "similarity",
]
