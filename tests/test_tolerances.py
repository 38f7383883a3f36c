"""
Tests for the tolerance table and the tolerance update rules
"""

import pytest
from sip_hybrid import (
    DEFAULT_TOLERANCES,
    SIPProblem,
    SIPSubResult,
    SubproblemKind,
    ToleranceTable,
)
from sip_hybrid.tolerances import capped, relaxed, tightened


@pytest.fixture
def buffer():
    problem = SIPProblem(
        n_sip=2,
        initial_eps_l=0.1,
        initial_eps_u=0.2,
        initial_eps_g=0.3,
        lower_tolerance=1e-5,
        upper_tolerance=2e-5,
        restoration_tolerance=3e-5,
    )
    buffer = SIPSubResult.from_problem(problem)
    buffer.eps_l[1] = 0.05
    return buffer


class TestToleranceTable:
    """Test which tolerance each subproblem kind is solved with."""

    def test_default_routing(self, buffer):
        """The default table routes every kind to its documented source."""
        table = DEFAULT_TOLERANCES
        assert table.tolerance(SubproblemKind.LOWER, buffer) == 1e-5
        assert table.tolerance(SubproblemKind.UPPER, buffer) == 2e-5
        assert table.tolerance(SubproblemKind.RESTORATION, buffer) == 3e-5
        assert table.tolerance(SubproblemKind.LLP1, buffer, 1) == 0.05
        assert table.tolerance(SubproblemKind.LLP2, buffer, 0) == 0.2
        assert table.tolerance(SubproblemKind.LLP3, buffer, 0) == 0.2

    def test_override(self, buffer):
        """Overrides replace single kinds and leave the rest alone."""
        table = DEFAULT_TOLERANCES.with_overrides({
            SubproblemKind.LLP3: lambda b, i: float(b.eps_g[i]),
        })
        assert table.tolerance(SubproblemKind.LLP3, buffer, 0) == 0.3
        assert table.tolerance(SubproblemKind.LLP2, buffer, 0) == 0.2
        assert DEFAULT_TOLERANCES.tolerance(SubproblemKind.LLP3, buffer, 0) == 0.2

    def test_missing_kind_rejected(self):
        """A table must cover every subproblem kind."""
        with pytest.raises(ValueError):
            ToleranceTable({SubproblemKind.LOWER: lambda b, i: 0.0})

    def test_reads_live_buffer(self, buffer):
        """Tolerances are read at call time, not when the table is built."""
        buffer.eps_u[0] = 0.01
        assert DEFAULT_TOLERANCES.tolerance(SubproblemKind.LLP2, buffer, 0) == 0.01


class TestUpdateRules:
    """Test the three tolerance update rules."""

    def test_tightened(self):
        """Inconclusive inner max tightens to the bound/value gap over r_l."""
        assert tightened(-0.2, 0.3, 2.0) == pytest.approx(0.25)

    def test_relaxed(self):
        assert relaxed(0.4, 4.0) == pytest.approx(0.1)

    def test_capped(self):
        """Capping never raises the tolerance."""
        assert capped(0.05, 0.02, 2.0) == pytest.approx(0.01)
        assert capped(0.005, 0.02, 2.0) == pytest.approx(0.005)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
