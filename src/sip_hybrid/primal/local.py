"""
Multistart Local Solves

Deterministic multistart wrappers around scipy.optimize used by the
reference backend:

- constrained minimization (SLSQP) for the bounding and restoration
  problems, with vector inequality constraints c(x) >= 0
- box-constrained maximization (L-BFGS-B) for the inner problems
"""

import numpy as np
from typing import Callable, Iterable, List, Optional, Tuple
from dataclasses import dataclass
from scipy.optimize import minimize


@dataclass
class LocalResult:
    """Best point of a multistart run."""
    x: Optional[np.ndarray] = None
    f: float = float('inf')
    violation: float = float('inf')
    starts: int = 0
    evaluations: int = 0

    @property
    def found(self) -> bool:
        return self.x is not None


def _max_violation(ineq: Optional[Callable[[np.ndarray], np.ndarray]], x: np.ndarray) -> float:
    if ineq is None:
        return 0.0
    c = np.atleast_1d(ineq(x))
    if c.size == 0:
        return 0.0
    return float(max(0.0, -np.min(c)))


def multistart_slsqp(
    objective: Callable[[np.ndarray], float],
    starts: Iterable[np.ndarray],
    bounds: List[Tuple[float, float]],
    ineq: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    feas_tol: float = 1e-7,
    maxiter: int = 200,
    ftol: float = 1e-10
) -> Tuple[LocalResult, LocalResult]:
    """
    Run SLSQP from every start.

    Returns:
        (best_feasible, least_violating): the lowest objective among
        points with violation <= feas_tol, and the point with smallest
        constraint violation overall (used to report infeasibility).
    """
    lb = np.array([b[0] for b in bounds])
    ub = np.array([b[1] for b in bounds])
    constraints = [{'type': 'ineq', 'fun': ineq}] if ineq is not None else []

    best = LocalResult()
    least = LocalResult()

    for x0 in starts:
        x0 = np.clip(np.asarray(x0, dtype=np.float64), lb, ub)
        res = minimize(
            objective,
            x0,
            method='SLSQP',
            bounds=bounds,
            constraints=constraints,
            options={'maxiter': maxiter, 'ftol': ftol, 'disp': False}
        )
        x = np.clip(res.x, lb, ub)
        f = float(objective(x))
        viol = _max_violation(ineq, x)

        for tracker in (best, least):
            tracker.starts += 1
            tracker.evaluations += int(res.nfev)

        if not np.isfinite(f):
            continue

        if viol < least.violation or (viol == least.violation and f < least.f):
            least.x, least.f, least.violation = x.copy(), f, viol

        if viol <= feas_tol and f < best.f:
            best.x, best.f, best.violation = x.copy(), f, viol

    return best, least


def multistart_maximize(
    fun: Callable[[np.ndarray], float],
    samples: np.ndarray,
    bounds: List[Tuple[float, float]],
    n_refine: int = 3,
    maxiter: int = 100
) -> LocalResult:
    """
    Maximize `fun` over a box: evaluate all samples, then refine the best
    `n_refine` of them with L-BFGS-B. Ties keep the earlier sample.
    """
    values = np.array([float(fun(p)) for p in samples])
    finite = np.where(np.isfinite(values), values, -np.inf)
    order = np.argsort(-finite, kind='stable')

    best = LocalResult(f=-np.inf, violation=0.0, evaluations=len(samples))
    if len(order) and np.isfinite(finite[order[0]]):
        best.x = np.array(samples[order[0]], dtype=np.float64)
        best.f = float(finite[order[0]])

    for k in order[:n_refine]:
        if not np.isfinite(finite[k]):
            continue
        res = minimize(
            lambda p: -fun(p),
            samples[k],
            method='L-BFGS-B',
            bounds=bounds,
            options={'maxiter': maxiter}
        )
        best.starts += 1
        best.evaluations += int(res.nfev)
        value = -float(res.fun)
        if np.isfinite(value) and value > best.f:
            best.x = np.array(res.x, dtype=np.float64)
            best.f = value

    return best
