"""
SIP-Hybrid Driver

Hybrid discretization algorithm with guaranteed feasibility for
semi-infinite programs (Djelassi & Mitsos, J. Glob. Optim. 68 (2017)
227-253, Algorithm 2).

The run is an explicit state machine:

    MAIN     lower-bounding problem + one inner max per constraint at its
             solution; grows the discretization sets
    UPPER    restricted upper-bounding problem + inner max at its solution;
             records certified incumbents
    RESTORE  bisection on the objective level between the bounds; certifies
             or refutes points at the midpoint target
    DONE     terminal

Subproblems are delegated to a `SubproblemSolver`. Numerical failures of
a collaborator are classified as undecided and never cross the driver
boundary.
"""

import logging
import math
import time
from enum import Enum
from typing import Any, Callable, Optional

from ..buffer import SIPSubResult
from ..core.output_gate import OutputGate, SIPResult, TerminationStatus
from ..display import print_iteration, print_solution, print_summary
from ..problem import SIPProblem
from ..subproblems import (
    InnerLevel,
    InnerResult,
    SubproblemKind,
    SubproblemSolver,
)
from ..tolerances import DEFAULT_TOLERANCES, ToleranceTable, capped, relaxed, tightened


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SubproblemKind, SIPSubResult, SIPResult, Optional[int]], Any]


class Phase(Enum):
    """States of the SIP-hybrid state machine."""
    MAIN = "main"
    UPPER = "upper"
    RESTORE = "restore"
    DONE = "done"


class SIPHybrid:
    """
    Driver for one SIP-hybrid run.

    Owns the iteration buffer and the result record; mutates the problem's
    discretization sets and nothing else. One instance serves one run.
    """

    def __init__(
        self,
        problem: SIPProblem,
        backend: SubproblemSolver,
        callback: Optional[ProgressCallback] = None,
        tolerances: Optional[ToleranceTable] = None,
        feas_tol: float = 1e-8
    ):
        self.problem = problem
        self.backend = backend
        self.callback = callback
        self.tolerances = tolerances or DEFAULT_TOLERANCES

        self.buffer = SIPSubResult.from_problem(problem)
        self.result = SIPResult()
        self.gate = OutputGate(feas_tol)

        self.phase = Phase.MAIN
        self.subproblem_calls = 0

        self._transitions = {
            Phase.MAIN: self._main_phase,
            Phase.UPPER: self._upper_phase,
            Phase.RESTORE: self._restore_phase,
        }

    def solve(self) -> SIPResult:
        """Run the state machine to DONE and return the validated result."""
        start = time.time()

        while self.phase != Phase.DONE:
            self.phase = self._transitions[self.phase]()

        self.result.solve_time += time.time() - start
        logger.info(
            "SIP-hybrid finished: %s after %d iterations (LBD=%g, UBD=%g)",
            self.result.status.value, self.result.iteration_number,
            self.result.lower_bound, self.result.upper_bound,
        )
        print_solution(self.problem.verbosity, self.result)
        return self.gate.emit(self.result)

    # ------------------------------------------------------------------
    # phases
    # ------------------------------------------------------------------

    def _main_phase(self) -> Phase:
        buffer, result = self.buffer, self.result

        tol = self.tolerances.tolerance(SubproblemKind.LOWER, buffer)
        buffer.lbd.tol = tol
        lbd = self._call(self.backend.solve_lower_bound, self.problem, buffer, tol)

        if lbd is None or lbd.undecided:
            buffer.lbd.store(math.nan, math.nan, False)
            self._notify(SubproblemKind.LOWER)
            logger.warning("Lower bounding problem undecided; skipping lower-level checks")
            return Phase.UPPER

        buffer.lbd.store(lbd.obj_value, lbd.obj_bound, lbd.feasible, lbd.sol)
        self._notify(SubproblemKind.LOWER)

        if not lbd.feasible:
            result.xsol = None
            result.feasibility = False
            result.status = TerminationStatus.INFEASIBLE
            return Phase.DONE

        self._record_lower(buffer.lbd.obj_val)

        all_nonpositive = True
        for i in range(self.problem.n_sip):
            inner = self._solve_inner(InnerLevel.LOWER, i)
            if inner is None:
                all_nonpositive = False
                continue
            if inner.obj_bound <= 0.0:
                continue
            all_nonpositive = False
            if inner.obj_value > 0.0:
                self._grow(i)
            else:
                buffer.eps_l[i] = tightened(inner.obj_value, inner.obj_bound, buffer.r_l)

        # lower-bound solution feasible for the infinite program: it is optimal
        if all_nonpositive and buffer.lbd.sol is not None:
            value = buffer.lbd.obj_val
            self._record_lower(value)
            if value <= result.upper_bound:
                self._record_upper(value, buffer.lbd.sol)
            result.status = TerminationStatus.CONVERGED
            return Phase.DONE

        return Phase.UPPER

    def _upper_phase(self) -> Phase:
        buffer, result = self.buffer, self.result

        tol = self.tolerances.tolerance(SubproblemKind.UPPER, buffer)
        buffer.ubd.tol = tol
        ubd = self._call(self.backend.solve_upper_bound, self.problem, buffer, tol)

        if ubd is None or ubd.undecided:
            buffer.ubd.store(math.nan, math.nan, False)
            self._notify(SubproblemKind.UPPER)
            logger.warning("Upper bounding problem undecided")
        elif ubd.feasible:
            buffer.ubd.store(ubd.obj_value, ubd.obj_bound, True, ubd.sol)
            self._notify(SubproblemKind.UPPER)

            all_nonpositive = True
            for i in range(self.problem.n_sip):
                inner = self._solve_inner(InnerLevel.UPPER, i)
                if inner is None:
                    all_nonpositive = False
                    continue
                if inner.obj_bound <= 0.0:
                    buffer.eps_g[i] = relaxed(buffer.eps_g[i], buffer.r_g)
                    continue
                all_nonpositive = False
                if inner.obj_value > 0.0:
                    self._grow(i)
                else:
                    buffer.eps_u[i] = tightened(inner.obj_value, inner.obj_bound, buffer.r_l)

            if all_nonpositive and buffer.ubd.obj_val <= result.upper_bound:
                self._record_upper(buffer.ubd.obj_val, buffer.ubd.sol)
        else:
            buffer.ubd.store(ubd.obj_value, ubd.obj_bound, False)
            self._notify(SubproblemKind.UPPER)
            buffer.eps_g /= buffer.r_g

        if self.problem.is_converged(result.lower_bound, result.upper_bound):
            result.status = TerminationStatus.CONVERGED
            return Phase.DONE

        # bisection needs a finite bracket
        if not (math.isfinite(result.lower_bound) and math.isfinite(result.upper_bound)):
            return self._end_cycle(Phase.MAIN)

        buffer.res.target = 0.5 * (result.lower_bound + result.upper_bound)
        return Phase.RESTORE

    def _restore_phase(self) -> Phase:
        buffer, result, problem = self.buffer, self.result, self.problem

        tol = self.tolerances.tolerance(SubproblemKind.RESTORATION, buffer)
        buffer.res.tol = tol
        res = self._call(self.backend.solve_restoration, problem, buffer, result, tol)
        result.res_iteration_number += 1

        if res is None or res.undecided:
            buffer.res.store(math.nan, math.nan, False)
            self._notify(SubproblemKind.RESTORATION)
            logger.warning("Restoration problem undecided at target %g", buffer.res.target)
            return self._reset_restoration()

        buffer.res.store(res.obj_value, res.obj_bound, res.obj_value > 0.0, res.sol)
        self._notify(SubproblemKind.RESTORATION)

        # target unreachable even on the discretization: it is a lower bound
        if res.obj_bound < 0.0:
            self._record_lower(buffer.res.target)
            if problem.is_converged(result.lower_bound, result.upper_bound):
                result.status = TerminationStatus.CONVERGED
                return Phase.DONE
            target = 0.5 * (result.lower_bound + result.upper_bound)
            # bracket no longer splits in floating point
            if not result.lower_bound < target < result.upper_bound:
                return self._reset_restoration()
            buffer.res.target = target
            return Phase.RESTORE

        if res.obj_value > 0.0:
            for i in range(problem.n_sip):
                inner = self._solve_inner(InnerLevel.RESTORATION, i)
                if inner is not None and inner.obj_bound <= 0.0:
                    continue
                # first uncertified constraint decides the next state
                if inner is not None and buffer.res_iteration_number < problem.res_iteration_limit:
                    self._grow(i)
                    buffer.res_iteration_number += 1
                    return Phase.RESTORE
                return self._reset_restoration()

            for i in range(problem.n_sip):
                buffer.eps_g[i] = capped(buffer.eps_g[i], buffer.res.obj_bnd, buffer.r_g)
            self._record_upper(buffer.res.target, buffer.res.sol)
            buffer.res_iteration_number = 0
            return self._end_cycle(Phase.UPPER)

        return self._reset_restoration()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _solve_inner(self, level: InnerLevel, i: int) -> Optional[InnerResult]:
        """Inner max of constraint i at the level's candidate; None if undecided."""
        buffer = self.buffer
        kind = level.kind
        record = buffer.record(kind)

        tol = self.tolerances.tolerance(kind, buffer, i)
        record.tol = tol
        inner = self._call(self.backend.solve_inner_max, level, self.problem, buffer, tol, i)

        if inner is None or inner.undecided:
            record.store(math.nan, math.nan, False)
            buffer.disc_buffer[i] = None
            self._notify(kind, i)
            logger.warning("%s undecided for constraint %d", kind.name, i)
            return None

        if inner.point is not None:
            buffer.stage_point(i, inner.point)
        else:
            buffer.disc_buffer[i] = None
        record.store(inner.obj_value, inner.obj_bound, inner.obj_bound <= 0.0, inner.point)
        self._notify(kind, i)
        return inner

    def _grow(self, i: int) -> None:
        point = self.buffer.disc_buffer[i]
        if point is None:
            logger.warning("Violation reported for constraint %d without a point", i)
            return
        self.problem.add_point(i, point)

    def _record_lower(self, value: float) -> None:
        """Raise the lower bound to `value`, never past the incumbent."""
        result = self.result
        if value <= result.lower_bound:
            return
        if value > result.upper_bound:
            logger.warning(
                "Lower bound %g above upper bound %g; capping at the upper bound",
                value, result.upper_bound,
            )
            value = result.upper_bound
        result.lower_bound = value

    def _record_upper(self, value: float, x: Any) -> None:
        result = self.result
        if x is None:
            logger.warning("Certified upper bound %g has no solution point; ignored", value)
            return
        if value < result.lower_bound:
            logger.warning(
                "Certified upper bound %g below lower bound %g; lowering the lower bound",
                value, result.lower_bound,
            )
            result.lower_bound = value
        result.record_upper(value, x)

    def _reset_restoration(self) -> Phase:
        self.buffer.res_iteration_number = 0
        return self._end_cycle(Phase.MAIN)

    def _end_cycle(self, next_phase: Phase) -> Phase:
        """Close an outer cycle; enforce the iteration limit."""
        self.result.iteration_number += 1
        print_iteration(self.problem.verbosity, self.problem, self.result)
        if self.result.iteration_number >= self.problem.iteration_limit:
            self.result.status = TerminationStatus.ITERATION_LIMIT
            return Phase.DONE
        return next_phase

    def _call(self, fn: Callable, *args) -> Any:
        try:
            return fn(*args)
        except (ArithmeticError, ValueError) as exc:
            logger.warning("%s failed: %s; treating as undecided", getattr(fn, '__name__', fn), exc)
            return None

    def _notify(self, kind: SubproblemKind, index: Optional[int] = None) -> None:
        self.subproblem_calls += 1
        print_summary(kind, self.problem.verbosity, self.buffer, index)
        if self.callback is not None:
            self.callback(kind, self.buffer, self.result, index)


def solve_sip(
    problem: SIPProblem,
    backend: SubproblemSolver,
    callback: Optional[ProgressCallback] = None,
    tolerances: Optional[ToleranceTable] = None
) -> SIPResult:
    """Run the SIP-hybrid algorithm once."""
    return SIPHybrid(problem, backend, callback=callback, tolerances=tolerances).solve()
