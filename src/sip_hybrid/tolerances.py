"""
Tolerance Table and Update Policy

Which tolerance feeds which subproblem is fixed once per run by a
`ToleranceTable`. The per-constraint tolerances are then moved by three
rules:

- tightened: inconclusive inner max, eps = (obj_bound - obj_value) / r_l
- relaxed:   eps / r_g
- capped:    min(eps, bound / r_g)
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping

from .buffer import SIPSubResult
from .subproblems import SubproblemKind


ToleranceGetter = Callable[[SIPSubResult, int], float]


def _default_getters() -> Dict[SubproblemKind, ToleranceGetter]:
    return {
        SubproblemKind.LOWER: lambda b, i: b.lbd.tol,
        SubproblemKind.UPPER: lambda b, i: b.ubd.tol,
        SubproblemKind.LLP1: lambda b, i: float(b.eps_l[i]),
        SubproblemKind.LLP2: lambda b, i: float(b.eps_u[i]),
        SubproblemKind.LLP3: lambda b, i: float(b.eps_u[i]),
        SubproblemKind.RESTORATION: lambda b, i: b.res.tol,
    }


@dataclass(frozen=True)
class ToleranceTable:
    """Maps each subproblem kind to the buffer tolerance it is solved with."""
    getters: Mapping[SubproblemKind, ToleranceGetter] = field(
        default_factory=_default_getters
    )

    def __post_init__(self):
        missing = [k.name for k in SubproblemKind if k not in self.getters]
        if missing:
            raise ValueError(f"No tolerance source for: {', '.join(missing)}")

    def tolerance(self, kind: SubproblemKind, buffer: SIPSubResult, i: int = 0) -> float:
        return float(self.getters[kind](buffer, i))

    def with_overrides(self, overrides: Mapping[SubproblemKind, ToleranceGetter]) -> 'ToleranceTable':
        """New table with some kinds redirected (e.g. a backend wanting eps_g for LLP3)."""
        getters = dict(self.getters)
        getters.update(overrides)
        return ToleranceTable(getters)


DEFAULT_TOLERANCES = ToleranceTable()


def tightened(obj_value: float, obj_bound: float, r_l: float) -> float:
    """Tolerance after an inconclusive inner max (obj_bound > 0 >= obj_value)."""
    return (obj_bound - obj_value) / r_l


def relaxed(eps: float, r_g: float) -> float:
    return eps / r_g


def capped(eps: float, bound: float, r_g: float) -> float:
    return min(eps, bound / r_g)
