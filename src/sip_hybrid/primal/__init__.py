"""
Primal Module - Sampling and Local Solves

Provides the deterministic building blocks of the reference backend:
- Sobol: Low-discrepancy quasi-random sampling of boxes
- Local: Multistart SLSQP / L-BFGS-B wrappers
"""

from .sobol import SobolGenerator
from .local import LocalResult, multistart_slsqp, multistart_maximize

__all__ = [
    'SobolGenerator',
    'LocalResult',
    'multistart_slsqp',
    'multistart_maximize',
]
