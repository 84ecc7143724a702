from .request_logging import log_api_requests

__all__ = ["log_api_requests"]
