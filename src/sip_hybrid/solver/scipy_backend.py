"""
SciPy Subproblem Backend

A deterministic, heuristic implementation of the four subproblem families
over a `SIPContract`, built on multistart SLSQP / L-BFGS-B:

    lower bound   min f(x)     s.t. g_i(x, p) <= 0       for p in D_i
    upper bound   min f(x)     s.t. g_i(x, p) <= -eps_g  for p in D_i
    inner max     max_p g_i(x*, p) over the box P_i
    restoration   max eta      s.t. f(x) <= target,
                                    g_i(x, p) <= -eta    for p in D_i

Local solvers cannot prove global optimality. Reported bounds follow an
epsilon-global convention: the true optimum is assumed within `tol` of
the value found.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional
import numpy as np

from ..buffer import SIPSubResult
from ..contract import SIPContract
from ..core.output_gate import SIPResult
from ..primal.local import multistart_maximize, multistart_slsqp
from ..primal.sobol import SobolGenerator
from ..problem import SIPProblem
from ..subproblems import (
    BoundResult,
    InnerLevel,
    InnerResult,
    RestorationResult,
    SubproblemSolver,
    SubproblemStatus,
)


@dataclass
class ScipyBackendConfig:
    """Configuration for the SciPy backend."""
    n_starts: int = 8
    n_inner_samples: int = 64
    n_inner_refine: int = 3
    maxiter: int = 200
    eta_cap: float = 1e3
    seed: int = 42


class ScipySubproblemSolver(SubproblemSolver):
    """Reference subproblem backend for SIPs given as callables."""

    def __init__(self, contract: SIPContract, config: ScipyBackendConfig = None):
        self.contract = contract
        self.config = config or ScipyBackendConfig()

        self._x_bounds = contract.domain_bounds.as_pairs()
        self._x_starts = SobolGenerator(
            contract.n_vars, self._x_bounds, seed=self.config.seed
        ).samples(self.config.n_starts)
        self._p_samples = [
            SobolGenerator(
                contract.param_box(i).n_vars,
                contract.param_box(i).as_pairs(),
                seed=self.config.seed + i
            ).samples(self.config.n_inner_samples)
            for i in range(contract.n_sip)
        ]

    # ------------------------------------------------------------------
    # bounding problems
    # ------------------------------------------------------------------

    def solve_lower_bound(self, problem: SIPProblem, buffer: SIPSubResult, tol: float) -> BoundResult:
        shift = np.zeros(problem.n_sip)
        return self._bounding(problem, buffer, shift, tol, warm=buffer.lbd.sol)

    def solve_upper_bound(self, problem: SIPProblem, buffer: SIPSubResult, tol: float) -> BoundResult:
        return self._bounding(problem, buffer, buffer.eps_g, tol, warm=buffer.ubd.sol)

    def _bounding(
        self,
        problem: SIPProblem,
        buffer: SIPSubResult,
        shift: np.ndarray,
        tol: float,
        warm: Optional[np.ndarray]
    ) -> BoundResult:
        ineq = self._disc_constraints(problem, shift)
        best, least = multistart_slsqp(
            self.contract.eval_objective,
            self._starts(warm),
            self._x_bounds,
            ineq=ineq,
            feas_tol=self.contract.feas_tol,
            maxiter=self.config.maxiter,
        )

        if best.found:
            return BoundResult(
                obj_value=best.f,
                feasible=True,
                obj_bound=best.f - tol,
                sol=best.x,
            )
        if least.found:
            return BoundResult(
                obj_value=np.nan,
                feasible=False,
                sol=least.x,
                status=SubproblemStatus.INFEASIBLE,
            )
        return BoundResult(obj_value=np.nan, feasible=False, status=SubproblemStatus.UNDECIDED)

    # ------------------------------------------------------------------
    # inner maximization
    # ------------------------------------------------------------------

    def solve_inner_max(
        self,
        level: InnerLevel,
        problem: SIPProblem,
        buffer: SIPSubResult,
        tol: float,
        i: int
    ) -> InnerResult:
        x = buffer.candidate(level)
        if x is None:
            return InnerResult(np.nan, np.nan, status=SubproblemStatus.UNDECIDED)
        return self.max_violation(i, x, tol)

    def max_violation(self, i: int, x: np.ndarray, tol: float = 0.0) -> InnerResult:
        """
        Maximize g_i(x, .) over the index set of constraint i.

        Also usable on its own to re-verify a reported solution.
        """
        contract = self.contract
        best = multistart_maximize(
            lambda p: contract.eval_constraint(i, x, p),
            self._p_samples[i],
            contract.param_box(i).as_pairs(),
            n_refine=self.config.n_inner_refine,
            maxiter=self.config.maxiter,
        )
        if not best.found:
            return InnerResult(np.nan, np.nan, status=SubproblemStatus.UNDECIDED)
        return InnerResult(obj_value=best.f, obj_bound=best.f + tol, point=best.x)

    # ------------------------------------------------------------------
    # restoration
    # ------------------------------------------------------------------

    def solve_restoration(
        self,
        problem: SIPProblem,
        buffer: SIPSubResult,
        result: SIPResult,
        tol: float
    ) -> RestorationResult:
        contract = self.contract
        target = buffer.res.target
        cap = self.config.eta_cap
        n = contract.n_vars
        disc_ineq = self._disc_constraints(problem, np.zeros(problem.n_sip))

        def objective(z):
            return -z[n]

        def ineq(z):
            x, eta = z[:n], z[n]
            parts = [np.array([target - contract.eval_objective(x)])]
            if disc_ineq is not None:
                parts.append(disc_ineq(x) - eta)
            return np.concatenate(parts)

        starts = [np.append(x0, 0.0) for x0 in self._starts(buffer.res.sol, result.xsol)]
        best, _ = multistart_slsqp(
            objective,
            starts,
            self._x_bounds + [(-cap, cap)],
            ineq=ineq,
            feas_tol=contract.feas_tol,
            maxiter=self.config.maxiter,
        )

        if not best.found:
            # no start reaches the target objective level
            return RestorationResult(obj_value=-cap, obj_bound=-cap + tol)

        x = best.x[:n]
        eta = min(cap, -contract.discretized_violation(x, problem.disc_sets))
        return RestorationResult(obj_value=eta, obj_bound=eta + tol, sol=x)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _disc_constraints(
        self,
        problem: SIPProblem,
        shift: np.ndarray
    ) -> Optional[Callable[[np.ndarray], np.ndarray]]:
        """c(x) = -(g_i(x, p) + shift_i) >= 0 over all discretization points."""
        pairs = [
            (i, p, float(shift[i]))
            for i, disc in enumerate(problem.disc_sets)
            for p in disc
        ]
        if not pairs:
            return None
        contract = self.contract

        def ineq(x):
            return np.array([-(contract.eval_constraint(i, x, p) + s) for i, p, s in pairs])

        return ineq

    def _starts(self, *warm: Optional[np.ndarray]) -> List[np.ndarray]:
        starts = [np.asarray(w, dtype=np.float64) for w in warm if w is not None]
        starts.append(self.contract.domain_bounds.center)
        starts.extend(self._x_starts)
        return starts
