"""
Tests for the result record and the output gate
"""

import math
import numpy as np
import pytest
from sip_hybrid import OutputGate, SIPResult, TerminationStatus


class TestSIPResult:
    """Test the result record."""

    def test_initial_state(self):
        """A fresh record has open bounds and no incumbent."""
        result = SIPResult()
        assert result.lower_bound == -math.inf
        assert result.upper_bound == math.inf
        assert result.xsol is None
        assert not result.feasibility
        assert not result.converged

    def test_record_upper(self):
        """Recording an incumbent copies the point and sets feasibility."""
        result = SIPResult()
        x = np.array([1.0, 2.0])
        result.record_upper(3.0, x)
        x[0] = 0.0
        assert result.upper_bound == 3.0
        assert result.feasibility
        np.testing.assert_array_equal(result.xsol, [1.0, 2.0])

    def test_canonical_form(self):
        """Statuses serialize by value and a missing incumbent as None."""
        data = SIPResult(lower_bound=0.0, status=TerminationStatus.ITERATION_LIMIT).to_canonical()
        assert data["status"] == "iteration_limit"
        assert data["xsol"] is None
        assert data["gap"] == math.inf


class TestOutputGate:
    """Test result validation."""

    def test_valid_converged(self):
        result = SIPResult(lower_bound=1.0, status=TerminationStatus.CONVERGED)
        result.record_upper(1.0005, [0.5])
        assert OutputGate().emit(result) is result

    def test_missing_status(self):
        """Results must carry a termination status."""
        with pytest.raises(ValueError):
            OutputGate().validate(SIPResult())

    def test_crossed_bounds(self):
        """Upper below lower beyond tolerance is rejected."""
        result = SIPResult(lower_bound=2.0, status=TerminationStatus.CONVERGED)
        result.record_upper(1.0, [0.0])
        with pytest.raises(ValueError):
            OutputGate().validate(result)

    def test_crossed_within_tolerance(self):
        result = SIPResult(lower_bound=1.0 + 1e-9, status=TerminationStatus.CONVERGED)
        result.record_upper(1.0, [0.0])
        assert OutputGate(feas_tol=1e-8).validate(result)

    def test_feasible_without_point(self):
        result = SIPResult(feasibility=True, status=TerminationStatus.ITERATION_LIMIT)
        with pytest.raises(ValueError):
            OutputGate().validate(result)

    def test_point_without_feasibility(self):
        result = SIPResult(xsol=np.zeros(1), status=TerminationStatus.ITERATION_LIMIT)
        with pytest.raises(ValueError):
            OutputGate().validate(result)

    def test_infeasible_with_incumbent(self):
        """An infeasible verdict cannot carry a feasible point."""
        result = SIPResult(status=TerminationStatus.INFEASIBLE)
        result.record_upper(0.0, [0.0])
        with pytest.raises(ValueError):
            OutputGate().validate(result)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
