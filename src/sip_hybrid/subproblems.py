"""
Subproblem Contract

The hybrid driver never solves an optimization problem itself. It hands
each subproblem kind to a `SubproblemSolver` and only consumes the
objective value, the objective bound, a feasibility flag and (for inner
maximizations) the maximizing point.

Subproblem kinds:
- LOWER: discretized lower-bounding master problem
- UPPER: restricted upper-bounding problem
- LLP1 / LLP2 / LLP3: inner maximization at the lower, upper or
  restoration candidate point
- RESTORATION: feasibility check at a target objective level
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional
import math
import numpy as np

if TYPE_CHECKING:
    from .buffer import SIPSubResult
    from .core.output_gate import SIPResult
    from .problem import SIPProblem


class SubproblemKind(Enum):
    """Tag of each subproblem the driver dispatches."""
    LOWER = "lbd"
    UPPER = "ubd"
    LLP1 = "llp1"
    LLP2 = "llp2"
    LLP3 = "llp3"
    RESTORATION = "res"


class InnerLevel(Enum):
    """Which candidate point an inner maximization is evaluated at."""
    LOWER = 1        # lower-bounding solution
    UPPER = 2        # upper-bounding solution
    RESTORATION = 3  # restoration solution

    @property
    def kind(self) -> SubproblemKind:
        return _LEVEL_KINDS[self]


_LEVEL_KINDS = {
    InnerLevel.LOWER: SubproblemKind.LLP1,
    InnerLevel.UPPER: SubproblemKind.LLP2,
    InnerLevel.RESTORATION: SubproblemKind.LLP3,
}


class SubproblemStatus(Enum):
    """Outcome reported by a collaborator."""
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNDECIDED = "undecided"  # numerical failure or budget exhausted


@dataclass
class BoundResult:
    """Result of a lower- or upper-bounding solve."""
    obj_value: float
    feasible: bool
    obj_bound: float = -math.inf
    sol: Optional[np.ndarray] = None
    status: SubproblemStatus = SubproblemStatus.OPTIMAL

    @property
    def undecided(self) -> bool:
        if self.status == SubproblemStatus.UNDECIDED:
            return True
        # an infeasible verdict needs no objective
        return self.feasible and math.isnan(self.obj_value)


@dataclass
class InnerResult:
    """
    Result of one inner maximization of a constraint over its index set.

    obj_value > 0 certifies a violation at `point`; obj_bound <= 0
    certifies that no violation exists anywhere in the index domain.
    """
    obj_value: float
    obj_bound: float
    point: Optional[np.ndarray] = None
    status: SubproblemStatus = SubproblemStatus.OPTIMAL

    @property
    def undecided(self) -> bool:
        return (
            self.status == SubproblemStatus.UNDECIDED
            or math.isnan(self.obj_value)
            or math.isnan(self.obj_bound)
        )


@dataclass
class RestorationResult:
    """
    Result of the restoration problem at the buffer's target objective.

    obj_bound < 0 means no point reaching the target satisfies even the
    discretized constraints; obj_value > 0 means `sol` satisfies them
    with positive margin.
    """
    obj_value: float
    obj_bound: float
    sol: Optional[np.ndarray] = None
    status: SubproblemStatus = SubproblemStatus.OPTIMAL

    @property
    def undecided(self) -> bool:
        return (
            self.status == SubproblemStatus.UNDECIDED
            or math.isnan(self.obj_value)
            or math.isnan(self.obj_bound)
        )


class SubproblemSolver(ABC):
    """
    Collaborator solving the four subproblem families for the driver.

    Implementations read the current discretization sets from `problem`
    and the candidate points and tolerances from `buffer`; they must not
    mutate either. Numerical failures should be reported as
    `SubproblemStatus.UNDECIDED` rather than raised.
    """

    @abstractmethod
    def solve_lower_bound(
        self,
        problem: 'SIPProblem',
        buffer: 'SIPSubResult',
        tol: float
    ) -> BoundResult:
        """Solve the discretized master problem."""

    @abstractmethod
    def solve_upper_bound(
        self,
        problem: 'SIPProblem',
        buffer: 'SIPSubResult',
        tol: float
    ) -> BoundResult:
        """Solve the restricted problem (restriction buffer.eps_g)."""

    @abstractmethod
    def solve_inner_max(
        self,
        level: InnerLevel,
        problem: 'SIPProblem',
        buffer: 'SIPSubResult',
        tol: float,
        i: int
    ) -> InnerResult:
        """Maximize constraint i over its index set at the level's candidate."""

    @abstractmethod
    def solve_restoration(
        self,
        problem: 'SIPProblem',
        buffer: 'SIPSubResult',
        result: 'SIPResult',
        tol: float
    ) -> RestorationResult:
        """Look for a point reaching buffer.res.target on the discretized constraints."""
