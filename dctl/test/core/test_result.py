"""Tests for dctl.core.result module."""

import pytest

from dctl.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    """Tests for Ok type."""

    def test_create_ok(self) -> None:
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_unwrap(self) -> None:
        assert Ok("cf").unwrap() == "cf"
        assert Ok("cf").unwrap_or("other") == "cf"

    def test_map_transforms_value(self) -> None:
        assert Ok(2).map(lambda v: v * 3) == Ok(6)

    def test_flat_map_continues_with_next_step(self) -> None:
        def halve(v: int) -> Result[int, str]:
            return Ok(v // 2) if v % 2 == 0 else Err("odd")

        assert Ok(8).flat_map(halve) == Ok(4)
        assert Ok(3).flat_map(halve) == Err("odd")

    def test_map_err_is_noop(self) -> None:
        result = Ok(1)
        assert result.map_err(lambda e: f"wrapped {e}") is result


class TestErr:
    """Tests for Err type."""

    def test_create_err(self) -> None:
        result = Err("boom")
        assert result.error == "boom"
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err"):
            Err("boom").unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_map_short_circuits(self) -> None:
        result = Err("boom")
        assert result.map(lambda v: v + 1) is result
        assert result.flat_map(lambda v: Ok(v)) is result

    def test_map_err_transforms_error(self) -> None:
        assert Err("boom").map_err(str.upper) == Err("BOOM")


class TestTypeGuards:
    def test_is_ok(self) -> None:
        assert is_ok(Ok(1))
        assert not is_ok(Err(1))

    def test_is_err(self) -> None:
        assert is_err(Err(1))
        assert not is_err(Ok(1))

    def test_pattern_matching(self) -> None:
        def describe(result: Result[int, str]) -> str:
            match result:
                case Ok(value):
                    return f"ok {value}"
                case Err(error):
                    return f"err {error}"

        assert describe(Ok(1)) == "ok 1"
        assert describe(Err("x")) == "err x"
