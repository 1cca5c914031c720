"""Tests for dctl.core.errors module."""

from dctl.core.errors import DeploymentError, DirectorError, ErrorCode, ExtraArgsError


class TestErrorCode:
    def test_values(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.ENV_ERROR == 2
        assert ErrorCode.COMMAND_ERROR == 3
        assert ErrorCode.NETWORK_ERROR == 4
        assert ErrorCode.IO_ERROR == 5

    def test_str(self) -> None:
        assert str(ErrorCode.NETWORK_ERROR) == "network error"

    def test_success_flags(self) -> None:
        assert ErrorCode.OK.is_success
        assert ErrorCode.IO_ERROR.is_error


class TestExtraArgsError:
    def test_message_joins_every_token(self) -> None:
        error = ExtraArgsError(("a", "b", "c"))
        assert error.message == "Extra arguments are not supported for this command: a, b, c"


class TestErrorValues:
    def test_frozen_and_comparable(self) -> None:
        assert DirectorError("x", status=401) == DirectorError("x", status=401)
        assert DeploymentError("x", no_deployment=True) != DeploymentError("x")
