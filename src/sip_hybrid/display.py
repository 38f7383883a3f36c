"""
Console Display

Progress lines for a SIP-hybrid run, gated by the problem verbosity:
1 prints the termination summary, 2 adds one line per outer iteration,
3 adds one line per subproblem solve.
"""

from typing import Optional

from .buffer import SIPSubResult
from .core.output_gate import SIPResult, TerminationStatus
from .problem import SIPProblem
from .subproblems import SubproblemKind


_KIND_LABELS = {
    SubproblemKind.LOWER: "Lower Bounding Problem",
    SubproblemKind.UPPER: "Upper Bounding Problem",
    SubproblemKind.LLP1: "Lower Level Problem 1",
    SubproblemKind.LLP2: "Lower Level Problem 2",
    SubproblemKind.LLP3: "Lower Level Problem 3",
    SubproblemKind.RESTORATION: "Restoration Problem",
}

_STATUS_MESSAGES = {
    TerminationStatus.CONVERGED: "Absolute Tolerance Achieved",
    TerminationStatus.INFEASIBLE: "Terminated: lower bounding problem infeasible",
    TerminationStatus.ITERATION_LIMIT: "Maximum Iteration Exceeded",
}


def print_summary(
    kind: SubproblemKind,
    verbosity: int,
    buffer: SIPSubResult,
    index: Optional[int] = None
) -> None:
    """One line per subproblem solve."""
    if verbosity < 3:
        return
    rec = buffer.record(kind)
    where = f"[{index}]" if index is not None else ""
    line = (
        f"  {_KIND_LABELS[kind]}{where}: "
        f"val={rec.obj_val:.6g} bnd={rec.obj_bnd:.6g} feas={rec.feas}"
    )
    if index is not None:
        line += (
            f" | eps_l={buffer.eps_l[index]:.3e}"
            f" eps_u={buffer.eps_u[index]:.3e}"
            f" eps_g={buffer.eps_g[index]:.3e}"
        )
    if kind == SubproblemKind.RESTORATION:
        line += f" | target={rec.target:.6g}"
    print(line)


def print_iteration(verbosity: int, problem: SIPProblem, result: SIPResult) -> None:
    """One line per completed outer cycle."""
    if verbosity < 2:
        return
    print(
        f"Iter: {result.iteration_number:,} | "
        f"LBD: {result.lower_bound:.6g} | "
        f"UBD: {result.upper_bound:.6g} | "
        f"Gap: {result.gap:.3e} | "
        f"Disc: {sum(problem.disc_sizes):,} | "
        f"Res: {result.res_iteration_number}"
    )


def print_solution(verbosity: int, result: SIPResult) -> None:
    """Termination summary."""
    if verbosity < 1:
        return
    print(" ")
    print(_STATUS_MESSAGES.get(result.status, "Terminated"))
    print(f"Iterations: {result.iteration_number}")
    print(f"LBD = {result.lower_bound}")
    print(f"UBD = {result.upper_bound}")
    if result.feasibility:
        print("Solution is :")
        for i, xi in enumerate(result.xsol):
            print(f"    X[{i}] = {xi}")
    print(" ")
