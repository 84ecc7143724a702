"""Unit tests for ErrCode, ErrCodeError, and handle_err_code."""

from fastapi import HTTPException

from dayfuse.common.code import ErrCode, ErrCodeError, handle_err_code


class TestErrCode:
    def test_with_messages_creates_error(self) -> None:
        error = ErrCode.TASK_NOT_FOUND.with_messages("Task 123 not found")
        assert isinstance(error, ErrCodeError)
        assert error.code == ErrCode.TASK_NOT_FOUND
        assert "Task 123 not found" in error.messages

    def test_with_errors_extracts_strings(self) -> None:
        error = ErrCode.INTERNAL_SERVER_ERROR.with_errors(ValueError("bad value"), RuntimeError("runtime fail"))
        assert error.messages == ("bad value", "runtime fail")


class TestErrCodeError:
    def test_format_with_messages(self) -> None:
        formatted = str(ErrCodeError(ErrCode.PUSH_DISABLED, ("Web Push is disabled",)))
        assert formatted == "[PUSH_DISABLED:3001] Web Push is disabled"

    def test_format_without_messages(self) -> None:
        assert str(ErrCodeError(ErrCode.TASK_NOT_FOUND)) == "[TASK_NOT_FOUND:2000]"

    def test_as_dict_with_messages(self) -> None:
        d = ErrCodeError(ErrCode.TASK_NOT_FOUND, ("primary", "detail1", "detail2")).as_dict()
        assert d == {"code": 2000, "msg": "primary", "info": ["detail1", "detail2"]}

    def test_as_dict_single_message(self) -> None:
        d = ErrCodeError(ErrCode.TASK_NOT_FOUND, ("only message",)).as_dict()
        assert d["msg"] == "only message"
        assert "info" not in d

    def test_as_dict_no_messages(self) -> None:
        d = ErrCodeError(ErrCode.VAPID_NOT_CONFIGURED).as_dict()
        assert d["msg"] == "Vapid Not Configured"
        assert d["info"] == []

    def test_empty_messages_filtered(self) -> None:
        error = ErrCodeError(ErrCode.UNKNOWN_ERROR, ("", "valid", ""))
        assert error.messages == ("valid",)


class TestHandleErrCode:
    def test_not_found_codes_map_to_404(self) -> None:
        for code in (ErrCode.TASK_NOT_FOUND, ErrCode.PUSH_SUBSCRIPTION_NOT_FOUND):
            exc = handle_err_code(code.with_messages("missing"))
            assert isinstance(exc, HTTPException)
            assert exc.status_code == 404
            assert exc.detail["code"] == code.value

    def test_push_unavailable_maps_to_503(self) -> None:
        assert handle_err_code(ErrCode.PUSH_DISABLED.with_messages()).status_code == 503
        assert handle_err_code(ErrCode.VAPID_NOT_CONFIGURED.with_messages()).status_code == 503

    def test_unmapped_code_is_500(self) -> None:
        assert handle_err_code(ErrCode.UNKNOWN_ERROR.with_messages("boom")).status_code == 500
