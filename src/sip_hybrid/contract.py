"""
SIP Contract Definition

Describes a semi-infinite program for the reference backend:

    min  f(x)
    s.t. g_i(x, p) <= 0   for all p in P_i,  i = 1..m
         x in [lower, upper]

where each index set P_i is a box.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence, Tuple
import numpy as np


@dataclass
class Bounds:
    """
    Box domain.

    Attributes:
        lower: Lower bounds for each coordinate
        upper: Upper bounds for each coordinate
    """
    lower: np.ndarray
    upper: np.ndarray

    def __post_init__(self):
        self.lower = np.atleast_1d(np.asarray(self.lower, dtype=np.float64))
        self.upper = np.atleast_1d(np.asarray(self.upper, dtype=np.float64))

        if len(self.lower) != len(self.upper):
            raise ValueError("Lower and upper bounds must have same length")

        if np.any(self.lower > self.upper):
            raise ValueError("Lower bounds must be <= upper bounds")

    @property
    def n_vars(self) -> int:
        return len(self.lower)

    @property
    def center(self) -> np.ndarray:
        return (self.lower + self.upper) / 2.0

    def as_pairs(self) -> List[Tuple[float, float]]:
        return list(zip(self.lower.tolist(), self.upper.tolist()))

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "lower": self.lower.tolist(),
            "upper": self.upper.tolist()
        }

    @classmethod
    def from_list(cls, bounds: Sequence[Tuple[float, float]]) -> 'Bounds':
        """Create from list of (lower, upper) tuples."""
        lower = [b[0] for b in bounds]
        upper = [b[1] for b in bounds]
        return cls(np.array(lower), np.array(upper))


SIPConstraint = Callable[[np.ndarray, np.ndarray], float]


@dataclass
class SIPContract:
    """
    Semi-infinite program given by callables.

    Attributes:
        objective: f(x) -> float
        constraints: g_i(x, p) -> float, required <= 0 for all p in P_i
        bounds: Decision variable box, list of (lo, hi)
        param_bounds: One index-set box per constraint, list of (lo, hi) lists
        feas_tol: Feasibility tolerance on discretized constraints
        name: Optional problem name
    """
    objective: Callable[[np.ndarray], float]
    constraints: List[SIPConstraint]
    bounds: List[Tuple[float, float]]
    param_bounds: List[List[Tuple[float, float]]]
    feas_tol: float = 1e-7
    name: str = "unnamed"

    _x_box: Bounds = field(init=False, repr=False, default=None)
    _p_boxes: List[Bounds] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self):
        self._x_box = Bounds.from_list(self.bounds)
        self._p_boxes = [Bounds.from_list(pb) for pb in self.param_bounds]

        if not self.constraints:
            raise ValueError("A SIP needs at least one semi-infinite constraint")
        if len(self.param_bounds) != len(self.constraints):
            raise ValueError("Each constraint needs its own index-set bounds")

    @property
    def n_vars(self) -> int:
        return self._x_box.n_vars

    @property
    def n_sip(self) -> int:
        return len(self.constraints)

    @property
    def domain_bounds(self) -> Bounds:
        return self._x_box

    def param_box(self, i: int) -> Bounds:
        return self._p_boxes[i]

    def eval_objective(self, x: np.ndarray) -> float:
        return float(self.objective(np.asarray(x, dtype=np.float64)))

    def eval_constraint(self, i: int, x: np.ndarray, p: np.ndarray) -> float:
        return float(self.constraints[i](
            np.asarray(x, dtype=np.float64),
            np.atleast_1d(np.asarray(p, dtype=np.float64)),
        ))

    def discretized_violation(self, x: np.ndarray, disc_sets: Sequence[Any]) -> float:
        """max_i max_{p in D_i} g_i(x, p); -inf when every set is empty."""
        worst = -np.inf
        for i, points in enumerate(disc_sets):
            for p in points:
                worst = max(worst, self.eval_constraint(i, x, p))
        return float(worst)

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "n_vars": self.n_vars,
            "n_sip": self.n_sip,
            "bounds": self._x_box.to_canonical(),
            "param_bounds": [b.to_canonical() for b in self._p_boxes],
            "feas_tol": self.feas_tol,
        }

    @classmethod
    def create(
        cls,
        objective: Callable[[np.ndarray], float],
        constraints: List[SIPConstraint],
        bounds: List[Tuple[float, float]],
        param_bounds: List[List[Tuple[float, float]]],
        name: str = "unnamed"
    ) -> 'SIPContract':
        """
        Create a SIP contract from callables.

        Args:
            objective: Objective function f(x) -> float
            constraints: Semi-infinite constraints g_i(x, p) <= 0
            bounds: List of (lower, upper) tuples for each variable
            param_bounds: Index-set box for each constraint
            name: Problem name

        Returns:
            SIPContract instance
        """
        return cls(
            objective=objective,
            constraints=list(constraints),
            bounds=list(bounds),
            param_bounds=[list(pb) for pb in param_bounds],
            name=name
        )
