"""
SIP-Hybrid Command-Line Interface

Runs the hybrid algorithm on a small library of classic semi-infinite
test problems with the SciPy reference backend.
"""

import sys
import argparse
import logging
import time
import numpy as np

from . import (
    PhaseTrace,
    SIPContract,
    SIPProblem,
    SIPHybrid,
    ScipyBackendConfig,
    ScipySubproblemSolver,
    TerminationStatus,
    canonical_dumps,
)


def build_mitsos() -> SIPContract:
    """Mitsos (2009) example: optimum f* ~ 0.1945 at x ~ (-0.7500, -0.6180)."""
    def f(x):
        return x[0] ** 2 / 3.0 + x[1] ** 2 + x[0] / 2.0

    def g(x, p):
        return (1.0 - x[0] ** 2 * p[0] ** 2) ** 2 - x[0] * p[0] ** 2 - x[1] ** 2 + x[1]

    return SIPContract.create(
        objective=f,
        constraints=[g],
        bounds=[(-5.0, 5.0), (-5.0, 5.0)],
        param_bounds=[[(0.0, 1.0)]],
        name="mitsos",
    )


def build_linear() -> SIPContract:
    """min -x s.t. x - p <= 0 for p in [1, 2]; optimum f* = -1 at x = 1."""
    return SIPContract.create(
        objective=lambda x: -x[0],
        constraints=[lambda x, p: x[0] - p[0]],
        bounds=[(0.0, 3.0)],
        param_bounds=[[(1.0, 2.0)]],
        name="linear",
    )


def build_tangent() -> SIPContract:
    """
    min -x1 - x2 s.t. x1 cos p + x2 sin p <= 1 for p in [0, pi/2];
    optimum f* = -sqrt(2) at x = (1/sqrt(2), 1/sqrt(2)).
    """
    return SIPContract.create(
        objective=lambda x: -x[0] - x[1],
        constraints=[lambda x, p: x[0] * np.cos(p[0]) + x[1] * np.sin(p[0]) - 1.0],
        bounds=[(0.0, 2.0), (0.0, 2.0)],
        param_bounds=[[(0.0, np.pi / 2.0)]],
        name="tangent",
    )


PROBLEMS = {
    'mitsos': build_mitsos,
    'linear': build_linear,
    'tangent': build_tangent,
}


def cmd_solve(args):
    """Solve a library problem."""
    print("=" * 60)
    print("SIP-Hybrid")
    print("=" * 60)

    contract = PROBLEMS[args.problem]()
    problem = SIPProblem(
        n_sip=contract.n_sip,
        absolute_tolerance=args.abs_tol,
        iteration_limit=args.iterations,
        res_iteration_limit=args.res_iterations,
        verbosity=args.verbosity,
    )
    backend = ScipySubproblemSolver(contract, ScipyBackendConfig(seed=args.seed))

    print(f"\nProblem: {contract.name}")
    print(f"Variables: {contract.n_vars}")
    print(f"Semi-infinite constraints: {contract.n_sip}")
    print(f"Absolute tolerance: {args.abs_tol}")

    trace = PhaseTrace() if args.trace else None

    print("\nSolving...")
    start = time.time()
    driver = SIPHybrid(problem, backend, callback=trace)
    result = driver.solve()
    elapsed = time.time() - start

    print("\n" + "-" * 60)
    print("RESULTS")
    print("-" * 60)
    print(f"Status: {result.status.name}")
    print(f"Time: {elapsed:.3f}s")
    print(f"Iterations: {result.iteration_number}")
    print(f"Subproblems solved: {driver.subproblem_calls}")
    print(f"Lower bound: {result.lower_bound:.6e}")
    print(f"Upper bound: {result.upper_bound:.6e}")
    print(f"Gap: {result.gap:.6e}")
    print(f"Discretization points: {problem.disc_sizes}")
    if result.xsol is not None:
        print(f"Solution: {result.xsol}")

    if trace is not None:
        trace.save_json(args.trace)
        print(f"\nTrace saved to: {args.trace} ({len(trace.events)} events)")

    if args.output:
        output_data = result.to_canonical()
        output_data.update({
            'problem': contract.to_canonical(),
            'discretization': problem.to_canonical()['disc_sets'],
            'subproblem_calls': driver.subproblem_calls,
            'time': elapsed,
        })
        with open(args.output, 'w') as f:
            f.write(canonical_dumps(output_data, indent=2))
        print(f"\nResults saved to: {args.output}")

    return 0 if result.status == TerminationStatus.CONVERGED else 1


def cmd_list(args):
    """List library problems."""
    for name, builder in PROBLEMS.items():
        summary = (builder.__doc__ or "").strip().splitlines()[0]
        print(f"{name:10} {summary}")
    return 0


def cmd_version(args):
    """Print version information."""
    from . import __version__
    print(f"sip-hybrid {__version__}")
    print("Hybrid discretization for semi-infinite programs")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='sip-hybrid',
        description='SIP-Hybrid - Semi-Infinite Programming with Guaranteed Feasibility'
    )
    parser.add_argument('--log-level', default='WARNING',
                        help='Python logging level (default: WARNING)')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    solve_parser = subparsers.add_parser('solve', help='Solve a library problem')
    solve_parser.add_argument('problem', choices=list(PROBLEMS.keys()),
                              help='Problem to solve')
    solve_parser.add_argument('--abs-tol', '-e', type=float, default=1e-3,
                              help='Absolute tolerance (default: 1e-3)')
    solve_parser.add_argument('--iterations', '-n', type=int, default=100,
                              help='Outer iteration limit (default: 100)')
    solve_parser.add_argument('--res-iterations', type=int, default=10,
                              help='Restoration iteration limit (default: 10)')
    solve_parser.add_argument('--verbosity', '-v', type=int, default=1,
                              help='Verbosity 0-3 (default: 1)')
    solve_parser.add_argument('--seed', type=int, default=42,
                              help='Sobol scrambling seed (default: 42)')
    solve_parser.add_argument('--trace', type=str,
                              help='Save the phase trace to this JSON file')
    solve_parser.add_argument('--output', '-o', type=str,
                              help='Output JSON file')
    solve_parser.set_defaults(func=cmd_solve)

    list_parser = subparsers.add_parser('list', help='List library problems')
    list_parser.set_defaults(func=cmd_list)

    ver_parser = subparsers.add_parser('version', help='Print version')
    ver_parser.set_defaults(func=cmd_version)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
