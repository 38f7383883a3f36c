"""
Phase Trace for Auditable SIP Runs

A progress callback that records every subproblem solve of a run into a
canonical JSON + SHA-256 chain. Each event links to the previous one, so
an edited trace fails verification.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from pathlib import Path

from .buffer import SIPSubResult
from .core.canonical_json import canonical_dumps, canonical_hash
from .core.output_gate import SIPResult
from .subproblems import SubproblemKind


@dataclass
class TraceEvent:
    """
    One recorded subproblem solve.

    Contains the kind and constraint index, the bounds at the time of the
    event, the subproblem record, a link to the previous event and the
    event's own hash.
    """
    sequence: int
    kind: SubproblemKind
    index: Optional[int]
    iteration: int
    lower_bound: float
    upper_bound: float
    record: Dict[str, Any]
    prev_hash: str
    event_hash: str = ""

    def __post_init__(self):
        if not self.event_hash:
            self.event_hash = self._compute_hash()

    def _payload(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "kind": self.kind.value,
            "index": self.index,
            "iteration": self.iteration,
            "lower_bound": self.lower_bound,
            "upper_bound": self.upper_bound,
            "record": self.record,
            "prev_hash": self.prev_hash,
        }

    def _compute_hash(self) -> str:
        return canonical_hash(self._payload())

    def verify(self) -> bool:
        return self.event_hash == self._compute_hash()

    def to_canonical(self) -> Dict[str, Any]:
        data = self._payload()
        data["event_hash"] = self.event_hash
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TraceEvent':
        return cls(
            sequence=data["sequence"],
            kind=SubproblemKind(data["kind"]),
            index=data["index"],
            iteration=data["iteration"],
            lower_bound=_load_float(data["lower_bound"]),
            upper_bound=_load_float(data["upper_bound"]),
            record=data["record"],
            prev_hash=data["prev_hash"],
            event_hash=data["event_hash"],
        )


def _load_float(value: Any) -> float:
    # canonical_dumps writes non-finite floats as strings
    return float(value)


class PhaseTrace:
    """
    Hash-chained log of a run, usable directly as the driver callback.

        trace = PhaseTrace()
        SIPHybrid(problem, backend, callback=trace).solve()
        assert trace.verify_chain()
    """

    def __init__(self):
        self.events: List[TraceEvent] = []
        self._prev_hash: str = "genesis"

    def __call__(
        self,
        kind: SubproblemKind,
        buffer: SIPSubResult,
        result: SIPResult,
        index: Optional[int] = None
    ) -> TraceEvent:
        record = buffer.record(kind).to_canonical()
        if index is not None:
            record["eps"] = [
                float(buffer.eps_l[index]),
                float(buffer.eps_u[index]),
                float(buffer.eps_g[index]),
            ]
        # round-trip so in-memory and reloaded events hash identically
        record = json.loads(canonical_dumps(record))

        event = TraceEvent(
            sequence=len(self.events),
            kind=kind,
            index=index,
            iteration=result.iteration_number,
            lower_bound=float(result.lower_bound),
            upper_bound=float(result.upper_bound),
            record=record,
            prev_hash=self._prev_hash,
        )
        self.events.append(event)
        self._prev_hash = event.event_hash
        return event

    def verify_chain(self) -> bool:
        """Check every event hash and every link."""
        prev_hash = "genesis"
        for event in self.events:
            if not event.verify():
                return False
            if event.prev_hash != prev_hash:
                return False
            prev_hash = event.event_hash
        return True

    @property
    def final_hash(self) -> str:
        if not self.events:
            return "genesis"
        return self.events[-1].event_hash

    def count(self, kind: SubproblemKind) -> int:
        return sum(1 for e in self.events if e.kind == kind)

    def bounds_history(self) -> List[Tuple[float, float]]:
        """(lower_bound, upper_bound) after every recorded solve."""
        return [(e.lower_bound, e.upper_bound) for e in self.events]

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "events": [e.to_canonical() for e in self.events],
            "final_hash": self.final_hash,
        }

    def save_json(self, path: Path) -> None:
        with open(path, 'w') as f:
            f.write(canonical_dumps(self.to_canonical(), indent=2))

    @classmethod
    def load_json(cls, path: Path) -> 'PhaseTrace':
        with open(path, 'r') as f:
            data = json.load(f)

        trace = cls()
        for e_data in data["events"]:
            event = TraceEvent.from_dict(e_data)
            trace.events.append(event)
            trace._prev_hash = event.event_hash
        return trace
