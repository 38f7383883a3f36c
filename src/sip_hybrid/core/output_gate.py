"""
Output Gate

Defines the result record returned by the SIP-hybrid driver and the gate
every result passes through before it leaves the solver.

Three termination statuses are admissible:

- CONVERGED: the bound gap closed (or the lower-bound solution was
  certified feasible for the infinite constraint set)
- INFEASIBLE: the discretized lower-bounding problem has no feasible point
- ITERATION_LIMIT: the outer iteration budget ran out; the best bounds
  found so far are reported, never as converged
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum
import math
import numpy as np


class TerminationStatus(Enum):
    """Reason the driver stopped."""
    CONVERGED = "converged"
    INFEASIBLE = "infeasible"
    ITERATION_LIMIT = "iteration_limit"


@dataclass
class SIPResult:
    """
    Running best bounds, incumbent and termination bookkeeping.

    Attributes:
        lower_bound: Best valid lower bound on the SIP optimum
        upper_bound: Objective of the best certified-feasible point
        xsol: Best certified-feasible point (None until one is recorded)
        feasibility: True once a point feasible for the infinite
            constraint set has been recorded
        status: Termination reason (None while running)
        iteration_number: Completed outer cycles
        res_iteration_number: Restoration solves over the whole run
        solve_time: Wall-clock seconds spent in the driver
    """
    lower_bound: float = -math.inf
    upper_bound: float = math.inf
    xsol: Optional[np.ndarray] = None
    feasibility: bool = False
    status: Optional[TerminationStatus] = None
    iteration_number: int = 0
    res_iteration_number: int = 0
    solve_time: float = 0.0

    @property
    def gap(self) -> float:
        return self.upper_bound - self.lower_bound

    @property
    def converged(self) -> bool:
        return self.status == TerminationStatus.CONVERGED

    def record_upper(self, value: float, x: np.ndarray) -> None:
        """Record a certified-feasible point as the incumbent."""
        self.upper_bound = float(value)
        self.xsol = np.array(x, dtype=np.float64, copy=True)
        self.feasibility = True

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "lower_bound": self.lower_bound,
            "upper_bound": self.upper_bound,
            "gap": self.gap,
            "xsol": self.xsol.tolist() if self.xsol is not None else None,
            "feasibility": self.feasibility,
            "status": self.status.value if self.status is not None else None,
            "iteration_number": self.iteration_number,
            "res_iteration_number": self.res_iteration_number,
        }


class OutputGate:
    """
    Validates a result record before it is returned to the caller.

    A violation here means the driver or a collaborator broke the record
    invariants, so it raises instead of reporting.
    """

    def __init__(self, feas_tol: float = 1e-8):
        self.feas_tol = feas_tol

    def validate(self, result: SIPResult) -> bool:
        """
        Check the record invariants.

        Checks:
        - a termination status is set
        - lower_bound <= upper_bound when both are finite
        - xsol is present exactly when feasibility is reported
        - an infeasible result carries no incumbent
        """
        if result.status is None:
            raise ValueError("Result has no termination status")

        lb, ub = result.lower_bound, result.upper_bound
        if math.isfinite(lb) and math.isfinite(ub) and ub < lb - self.feas_tol:
            raise ValueError(f"upper_bound {ub} < lower_bound {lb}")

        if result.feasibility and result.xsol is None:
            raise ValueError("Feasible result requires xsol")
        if not result.feasibility and result.xsol is not None:
            raise ValueError("xsol recorded without feasibility")

        if result.status == TerminationStatus.INFEASIBLE and result.feasibility:
            raise ValueError("INFEASIBLE result cannot carry a feasible point")

        return True

    def emit(self, result: SIPResult) -> SIPResult:
        """
        Validate and emit a result through the output gate.

        This is the only way results should leave the driver.
        """
        self.validate(result)
        return result
