"""Solveurs du problème d'affectation (source → cible) sur une matrice de coûts."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod

from fieldconcord.config import SolverConfig

logger = logging.getLogger(__name__)

UNMATCHED = -1

CostMatrix = list[list[float]]


def _is_forbidden(c: float) -> bool:
    # inf, -inf et NaN sont traités comme paires interdites
    return not math.isfinite(c)


def _check_shape(cost: CostMatrix, n: int, m: int) -> None:
    if len(cost) != n or any(len(row) != m for row in cost):
        raise ValueError(f"Matrice de coûts attendue {n}x{m}")


class AssignmentSolver(ABC):
    """
    Contrat commun des solveurs.

    ``solve(cost, n, m)`` retourne une liste de longueur n : ``result[i] == j``
    affecte la source i à la cible j, ``-1`` = non affectée. Un coût plus bas
    est meilleur ; un coût infini interdit la paire. Le résultat est injectif
    et ne contient que des paires de coût fini.
    """

    name = ""

    @abstractmethod
    def solve(self, cost: CostMatrix, n: int, m: int) -> list[int]:
        raise NotImplementedError


class HungarianSolver(AssignmentSolver):
    """
    Algorithme hongrois (Munkres), affectation optimale en O(n³).

    La matrice est complétée en carré de taille max(n, m). Une cellule
    interdite ou de remplissage vaut le coût neutre 0 dans le problème
    carré : la prendre revient à laisser la ligne sans correspondance. On
    obtient donc l'affectation partielle de coût minimal, et ces cellules
    sont rapportées comme non affectées.
    """

    name = "hungarian"

    def solve(self, cost: CostMatrix, n: int, m: int) -> list[int]:
        _check_shape(cost, n, m)
        size = max(n, m)
        if size == 0:
            return []

        square = [[0.0] * size for _ in range(size)]
        for i in range(n):
            for j in range(m):
                c = cost[i][j]
                if not _is_forbidden(c):
                    square[i][j] = c

        assignment = self._solve_square(square, size)

        result = [UNMATCHED] * n
        for i in range(n):
            j = assignment[i]
            if 0 <= j < m and not _is_forbidden(cost[i][j]):
                result[i] = j
        return result

    @staticmethod
    def _solve_square(cost: CostMatrix, n: int) -> list[int]:
        """
        Méthode primale-duale par chemins augmentants.

        Invariant : ``u[i] + v[j] <= cost[i][j]`` pour toute arête. Les lignes
        sont indexées 1..n, la colonne 0 est la sentinelle de départ.
        """
        u = [0.0] * (n + 1)
        v = [0.0] * (n + 1)
        p = [0] * (n + 1)  # p[j] = ligne affectée à la colonne j (0 = libre)
        way = [0] * (n + 1)  # colonne précédente sur le chemin augmentant

        for i in range(1, n + 1):
            p[0] = i
            j0 = 0
            minv = [math.inf] * (n + 1)
            used = [False] * (n + 1)
            augmented = True

            while True:
                used[j0] = True
                i0 = p[j0]
                delta = math.inf
                j1 = -1
                for j in range(1, n + 1):
                    if used[j]:
                        continue
                    cur = cost[i0 - 1][j - 1] - u[i0] - v[j]
                    if cur < minv[j]:
                        minv[j] = cur
                        way[j] = j0
                    if minv[j] < delta:
                        delta = minv[j]
                        j1 = j

                # Aucune colonne atteignable à coût fini : on abandonne cette ligne
                if j1 == -1 or math.isinf(delta):
                    augmented = False
                    break

                for j in range(n + 1):
                    if used[j]:
                        u[p[j]] += delta
                        v[j] -= delta
                    else:
                        minv[j] -= delta

                j0 = j1
                if p[j0] == 0:
                    break

            if not augmented:
                logger.debug("Ligne %d sans chemin augmentant fini, laissée libre", i - 1)
                continue

            while j0 != 0:
                j1 = way[j0]
                p[j0] = p[j1]
                j0 = j1

        result = [UNMATCHED] * n
        for j in range(1, n + 1):
            if p[j] > 0:
                result[p[j] - 1] = j - 1
        return result


class GreedySolver(AssignmentSolver):
    """
    Affectation gloutonne, O(n·m log(n·m)).

    Trie toutes les paires de coût fini par coût croissant puis les retient
    tant que la source et la cible sont libres. Pas toujours optimale.
    """

    name = "greedy"

    def solve(self, cost: CostMatrix, n: int, m: int) -> list[int]:
        _check_shape(cost, n, m)
        pairs = [
            (cost[i][j], i, j)
            for i in range(n)
            for j in range(m)
            if not _is_forbidden(cost[i][j])
        ]
        # Tri stable : à coût égal, l'ordre (source, cible) est conservé
        pairs.sort(key=lambda p: p[0])

        result = [UNMATCHED] * n
        used_targets: set[int] = set()
        for _, i, j in pairs:
            if result[i] == UNMATCHED and j not in used_targets:
                result[i] = j
                used_targets.add(j)
        return result


def get_solver(config: SolverConfig) -> AssignmentSolver:
    """Sélectionne le solveur selon la configuration."""
    solver: AssignmentSolver = HungarianSolver() if config.use_exact_solver else GreedySolver()
    logger.debug("Solveur sélectionné: %s", solver.name)
    return solver


def assignment_cost(cost: CostMatrix, assignment: list[int]) -> float:
    """Coût total d'une affectation (paires non affectées ignorées)."""
    return sum(cost[i][j] for i, j in enumerate(assignment) if j != UNMATCHED)
