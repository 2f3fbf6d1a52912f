"""
Unit tests for Result pattern.
"""

import pytest
from newsreels.core import Result


@pytest.mark.unit
class TestResult:
    """Test Result pattern."""

    def test_ok_result(self):
        """Test successful Result."""
        result = Result.ok({"derived_text": "x"})

        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == {"derived_text": "x"}
        assert result.unwrap_or({}) == {"derived_text": "x"}
        assert bool(result)

    def test_err_result(self):
        """Test error Result."""
        result = Result.err("image timeout")

        assert result.is_err()
        assert result.unwrap_err() == "image timeout"
        assert result.unwrap_or(None) is None
        assert not bool(result)

    def test_unwrap_on_err_raises(self):
        with pytest.raises(ValueError, match="error Result"):
            Result.err("failed").unwrap()

    def test_unwrap_err_on_ok_raises(self):
        with pytest.raises(ValueError, match="ok Result"):
            Result.ok(42).unwrap_err()

    def test_ok_none_is_still_ok(self):
        """A stage with nothing to merge returns Result.ok(None)."""
        result = Result.ok(None)
        assert result.is_ok()
        assert result.unwrap() is None

    def test_repr(self):
        assert repr(Result.ok(1)) == "Result.ok(1)"
        assert repr(Result.err("x")) == "Result.err('x')"
