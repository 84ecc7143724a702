from .error_code import ErrCode, ErrCodeError, handle_err_code

__all__ = ["ErrCode", "ErrCodeError", "handle_err_code"]
