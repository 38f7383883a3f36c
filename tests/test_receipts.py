"""
Tests for canonical JSON and the hash-chained phase trace
"""

import json
import math
import numpy as np
import pytest
from sip_hybrid import (
    PhaseTrace,
    SIPProblem,
    SIPResult,
    SIPSubResult,
    SubproblemKind,
    canonical_dumps,
    canonical_hash,
)


def _record(trace, buffer, result):
    buffer.lbd.store(1.0, 0.9, True, [0.5])
    result.lower_bound = 0.9
    trace(SubproblemKind.LOWER, buffer, result)
    buffer.llp1.store(0.2, 0.3, False)
    trace(SubproblemKind.LLP1, buffer, result, 0)
    result.iteration_number = 1
    trace(SubproblemKind.UPPER, buffer, result)


@pytest.fixture
def state():
    problem = SIPProblem(n_sip=1)
    return SIPSubResult.from_problem(problem), SIPResult()


class TestCanonicalJSON:
    """Test deterministic serialization."""

    def test_key_order_irrelevant(self):
        """Key order does not change the hash."""
        assert canonical_hash({"a": 1, "b": 2}) == canonical_hash({"b": 2, "a": 1})

    def test_numpy_and_non_finite(self):
        """Arrays become lists and non-finite floats become strings."""
        data = json.loads(canonical_dumps({
            "x": np.array([1.0, 2.0]),
            "n": np.int64(3),
            "lb": -math.inf,
            "v": math.nan,
        }))
        assert data == {"x": [1.0, 2.0], "n": 3, "lb": "-inf", "v": "nan"}


class TestPhaseTrace:
    """Test the phase trace hash chain."""

    def test_chain_verifies(self, state):
        """A freshly recorded trace verifies."""
        trace = PhaseTrace()
        _record(trace, *state)
        assert len(trace.events) == 3
        assert trace.verify_chain()
        assert trace.events[1].prev_hash == trace.events[0].event_hash
        assert trace.final_hash == trace.events[-1].event_hash

    def test_empty_trace(self):
        trace = PhaseTrace()
        assert trace.verify_chain()
        assert trace.final_hash == "genesis"

    def test_inner_events_carry_tolerances(self, state):
        """Events with a constraint index record eps_l, eps_u, eps_g."""
        trace = PhaseTrace()
        _record(trace, *state)
        assert trace.events[1].index == 0
        assert trace.events[1].record["eps"] == [1e-4, 1e-4, 1e-1]
        assert "eps" not in trace.events[0].record

    def test_tamper_detected(self, state):
        """Editing a recorded value breaks verification."""
        trace = PhaseTrace()
        _record(trace, *state)
        trace.events[1].record["obj_val"] = -5.0
        assert not trace.verify_chain()

    def test_broken_link_detected(self, state):
        """Dropping an event breaks the chain."""
        trace = PhaseTrace()
        _record(trace, *state)
        del trace.events[1]
        assert not trace.verify_chain()

    def test_counts_and_history(self, state):
        trace = PhaseTrace()
        _record(trace, *state)
        assert trace.count(SubproblemKind.LOWER) == 1
        assert trace.count(SubproblemKind.RESTORATION) == 0
        assert trace.bounds_history()[0] == (0.9, math.inf)

    def test_save_and_load(self, state, tmp_path):
        """A saved trace reloads with identical hashes."""
        trace = PhaseTrace()
        _record(trace, *state)
        path = tmp_path / "trace.json"
        trace.save_json(path)

        loaded = PhaseTrace.load_json(path)
        assert loaded.verify_chain()
        assert loaded.final_hash == trace.final_hash
        assert loaded.events[0].upper_bound == math.inf
        assert loaded.events[1].kind == SubproblemKind.LLP1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
