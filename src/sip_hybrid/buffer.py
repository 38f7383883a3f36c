"""
Iteration Buffer

Per-run scratch state shared across all subproblem kinds. One buffer is
allocated per driver and overwritten in place every iteration.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import math
import numpy as np

from .problem import SIPProblem
from .subproblems import InnerLevel, SubproblemKind


@dataclass
class SubproblemRecord:
    """Last objective value/bound, feasibility and solution of one subproblem kind."""
    obj_val: float = math.nan
    obj_bnd: float = math.nan
    feas: bool = False
    sol: Optional[np.ndarray] = None
    tol: float = 0.0
    target: float = math.nan  # restoration only

    def store(self, obj_val: float, obj_bnd: float, feas: bool, sol: Any = None):
        self.obj_val = float(obj_val)
        self.obj_bnd = float(obj_bnd)
        self.feas = bool(feas)
        if sol is not None:
            self.sol = np.array(sol, dtype=np.float64, copy=True)

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "obj_val": self.obj_val,
            "obj_bnd": self.obj_bnd,
            "feas": self.feas,
            "sol": self.sol.tolist() if self.sol is not None else None,
            "tol": self.tol,
            "target": self.target,
        }


@dataclass
class SIPSubResult:
    """
    Scratch state of one SIP-hybrid run.

    Attributes:
        eps_l: Per-constraint tolerance of the lower inner problems
        eps_u: Per-constraint tolerance of the upper inner problems
        eps_g: Per-constraint restriction of the upper-bounding problem
        r_l: Contraction factor for eps_l / eps_u
        r_g: Contraction factor for eps_g
        pbar: Maximizer returned by the last inner maximization
        disc_buffer: Staging copy of pbar per constraint
        lbd, ubd, llp1, llp2, llp3, res: Per-kind records
        res_iteration_number: Restoration retries in the current cycle
    """
    eps_l: np.ndarray
    eps_u: np.ndarray
    eps_g: np.ndarray
    r_l: float
    r_g: float
    pbar: Optional[np.ndarray] = None
    disc_buffer: list = field(default_factory=list)

    lbd: SubproblemRecord = field(default_factory=SubproblemRecord)
    ubd: SubproblemRecord = field(default_factory=SubproblemRecord)
    llp1: SubproblemRecord = field(default_factory=SubproblemRecord)
    llp2: SubproblemRecord = field(default_factory=SubproblemRecord)
    llp3: SubproblemRecord = field(default_factory=SubproblemRecord)
    res: SubproblemRecord = field(default_factory=SubproblemRecord)

    res_iteration_number: int = 0

    @classmethod
    def from_problem(cls, problem: SIPProblem) -> 'SIPSubResult':
        n = problem.n_sip
        buffer = cls(
            eps_l=np.full(n, problem.initial_eps_l),
            eps_u=np.full(n, problem.initial_eps_u),
            eps_g=np.full(n, problem.initial_eps_g),
            r_l=problem.r_l,
            r_g=problem.r_g,
            disc_buffer=[None] * n,
        )
        buffer.lbd.tol = problem.lower_tolerance
        buffer.ubd.tol = problem.upper_tolerance
        buffer.res.tol = problem.restoration_tolerance
        return buffer

    def record(self, kind: SubproblemKind) -> SubproblemRecord:
        return getattr(self, kind.value)

    def candidate(self, level: InnerLevel) -> Optional[np.ndarray]:
        """Decision point an inner maximization at `level` is evaluated at."""
        if level == InnerLevel.LOWER:
            return self.lbd.sol
        if level == InnerLevel.UPPER:
            return self.ubd.sol
        return self.res.sol

    def stage_point(self, i: int, point: Any) -> np.ndarray:
        """Stage the last maximizer for constraint i."""
        self.pbar = np.atleast_1d(np.array(point, dtype=np.float64, copy=True))
        self.disc_buffer[i] = self.pbar.copy()
        return self.disc_buffer[i]

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "eps_l": self.eps_l.tolist(),
            "eps_u": self.eps_u.tolist(),
            "eps_g": self.eps_g.tolist(),
            "pbar": self.pbar.tolist() if self.pbar is not None else None,
            "lbd": self.lbd.to_canonical(),
            "ubd": self.ubd.to_canonical(),
            "llp1": self.llp1.to_canonical(),
            "llp2": self.llp2.to_canonical(),
            "llp3": self.llp3.to_canonical(),
            "res": self.res.to_canonical(),
            "res_iteration_number": self.res_iteration_number,
        }
