"""
SIP Problem Configuration

Algorithm parameters for one SIP-hybrid run together with the per-constraint
discretization sets. The discretization sets are the only state mutated
while the algorithm runs, and they only ever grow.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence
import numpy as np


class DiscretizationSet:
    """
    Ordered, append-only sample of one constraint's index domain.

    Points are stored as float64 copies; nothing is ever removed or
    reordered. Duplicates are kept.
    """

    def __init__(self, points: Optional[Sequence[Any]] = None):
        self._points: List[np.ndarray] = []
        for p in points or []:
            self.append(p)

    def append(self, point: Any) -> np.ndarray:
        """Append a copy of `point` and return the stored array."""
        stored = np.atleast_1d(np.array(point, dtype=np.float64, copy=True))
        self._points.append(stored)
        return stored

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._points)

    def __getitem__(self, k: int) -> np.ndarray:
        return self._points[k]

    def to_canonical(self) -> List[List[float]]:
        return [p.tolist() for p in self._points]


@dataclass
class SIPProblem:
    """
    Configuration of a semi-infinite program for the hybrid algorithm.

    Attributes:
        n_sip: Number of semi-infinite constraints
        disc_sets: One discretization set per constraint (empty by default)
        absolute_tolerance: Convergence tolerance on upper - lower bound
        relative_tolerance: Relative gap tolerance (0 disables it)
        iteration_limit: Maximum number of outer cycles
        res_iteration_limit: Maximum restoration attempts per cycle
        verbosity: 0 silent, 1 summary, 2 per iteration, 3 per subproblem
        initial_eps_l: Starting tolerance of the lower inner problems
        initial_eps_u: Starting tolerance of the upper inner problems
        initial_eps_g: Starting restriction of the upper-bounding problem
        r_l: Contraction factor for eps_l / eps_u (> 1)
        r_g: Contraction factor for eps_g (> 1)
        lower_tolerance: Tolerance handed to the lower-bounding solve
        upper_tolerance: Tolerance handed to the upper-bounding solve
        restoration_tolerance: Tolerance handed to the restoration solve
    """
    n_sip: int
    disc_sets: List[DiscretizationSet] = field(default_factory=list)
    absolute_tolerance: float = 1e-3
    relative_tolerance: float = 0.0
    iteration_limit: int = 100
    res_iteration_limit: int = 10
    verbosity: int = 0

    initial_eps_l: float = 1e-4
    initial_eps_u: float = 1e-4
    initial_eps_g: float = 1e-1
    r_l: float = 2.0
    r_g: float = 2.0

    lower_tolerance: float = 1e-6
    upper_tolerance: float = 1e-6
    restoration_tolerance: float = 1e-6

    def __post_init__(self):
        if self.n_sip < 1:
            raise ValueError("n_sip must be at least 1")

        if not self.disc_sets:
            self.disc_sets = [DiscretizationSet() for _ in range(self.n_sip)]
        else:
            self.disc_sets = [
                d if isinstance(d, DiscretizationSet) else DiscretizationSet(d)
                for d in self.disc_sets
            ]
        if len(self.disc_sets) != self.n_sip:
            raise ValueError(
                f"Expected {self.n_sip} discretization sets, got {len(self.disc_sets)}"
            )

        if self.absolute_tolerance < 0 or self.relative_tolerance < 0:
            raise ValueError("Convergence tolerances must be nonnegative")
        if self.iteration_limit < 1:
            raise ValueError("iteration_limit must be at least 1")
        if self.res_iteration_limit < 1:
            raise ValueError("res_iteration_limit must be at least 1")
        if self.r_l <= 1.0 or self.r_g <= 1.0:
            raise ValueError("Contraction factors r_l and r_g must be > 1")
        if min(self.initial_eps_l, self.initial_eps_u, self.initial_eps_g) <= 0:
            raise ValueError("Initial tolerances must be positive")

    def add_point(self, i: int, point: Any) -> np.ndarray:
        """
        Append a candidate point to the discretization set of constraint i.

        Raises:
            IndexError: if i is not in [0, n_sip)
        """
        if not 0 <= i < self.n_sip:
            raise IndexError(f"Constraint index {i} out of range [0, {self.n_sip})")
        return self.disc_sets[i].append(point)

    def disc_set(self, i: int) -> DiscretizationSet:
        return self.disc_sets[i]

    @property
    def disc_sizes(self) -> List[int]:
        return [len(d) for d in self.disc_sets]

    def is_converged(self, lower_bound: float, upper_bound: float) -> bool:
        """Absolute or relative gap criterion between the bounds."""
        gap = upper_bound - lower_bound
        if not np.isfinite(gap):
            return False
        if gap <= self.absolute_tolerance:
            return True
        scale = max(abs(lower_bound), abs(upper_bound))
        return self.relative_tolerance > 0 and gap <= self.relative_tolerance * scale

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "n_sip": self.n_sip,
            "absolute_tolerance": self.absolute_tolerance,
            "relative_tolerance": self.relative_tolerance,
            "iteration_limit": self.iteration_limit,
            "res_iteration_limit": self.res_iteration_limit,
            "r_l": self.r_l,
            "r_g": self.r_g,
            "disc_sets": [d.to_canonical() for d in self.disc_sets],
        }
