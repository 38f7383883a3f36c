"""
Solver Module - SIP-Hybrid Driver and Backends

Provides:
- SIPHybrid: State-machine driver of the hybrid discretization algorithm
- ScipySubproblemSolver: Reference subproblem backend on scipy.optimize
"""

from .hybrid import (
    Phase,
    SIPHybrid,
    solve_sip,
)
from .scipy_backend import (
    ScipyBackendConfig,
    ScipySubproblemSolver,
)

__all__ = [
    'Phase',
    'SIPHybrid',
    'solve_sip',
    'ScipyBackendConfig',
    'ScipySubproblemSolver',
]
