"""
SIP-Hybrid - Semi-Infinite Programming with Guaranteed Feasibility

This package implements the hybrid discretization algorithm for
semi-infinite programs (SIPs):

    min f(x)  s.t.  g_i(x, p) <= 0  for every p in P_i

The infinite constraint sets are approximated by discretization sets that
grow adaptively, while a restoration phase bisects between the best bounds
so that the reported solution is feasible for the infinite program.

Key Features:
- Explicit MAIN / UPPER / RESTORE state machine with bounded iterations
- Pluggable subproblem backends (SubproblemSolver)
- Reference backend on scipy.optimize with Sobol multistart
- Hash-chained phase trace for replay and audit
"""

from .problem import (
    SIPProblem,
    DiscretizationSet,
)
from .buffer import (
    SIPSubResult,
    SubproblemRecord,
)
from .contract import (
    Bounds,
    SIPContract,
)
from .subproblems import (
    SubproblemKind,
    InnerLevel,
    SubproblemStatus,
    BoundResult,
    InnerResult,
    RestorationResult,
    SubproblemSolver,
)
from .tolerances import (
    ToleranceTable,
    DEFAULT_TOLERANCES,
)
from .receipts import (
    PhaseTrace,
    TraceEvent,
)
from .core.canonical_json import canonical_dumps, canonical_hash
from .core.output_gate import (
    TerminationStatus,
    SIPResult,
    OutputGate,
)
from .primal.sobol import SobolGenerator
from .solver.hybrid import (
    Phase,
    SIPHybrid,
    solve_sip,
)
from .solver.scipy_backend import (
    ScipyBackendConfig,
    ScipySubproblemSolver,
)

__version__ = "0.1.0"

__all__ = [
    # Problem configuration
    "SIPProblem",
    "DiscretizationSet",
    # Iteration buffer
    "SIPSubResult",
    "SubproblemRecord",
    # Contract
    "Bounds",
    "SIPContract",
    # Subproblem contract
    "SubproblemKind",
    "InnerLevel",
    "SubproblemStatus",
    "BoundResult",
    "InnerResult",
    "RestorationResult",
    "SubproblemSolver",
    # Tolerances
    "ToleranceTable",
    "DEFAULT_TOLERANCES",
    # Trace
    "PhaseTrace",
    "TraceEvent",
    "canonical_dumps",
    "canonical_hash",
    # Results
    "TerminationStatus",
    "SIPResult",
    "OutputGate",
    # Sampling
    "SobolGenerator",
    # Solver
    "Phase",
    "SIPHybrid",
    "solve_sip",
    "ScipyBackendConfig",
    "ScipySubproblemSolver",
]
