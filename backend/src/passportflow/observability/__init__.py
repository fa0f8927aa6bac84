from .logging_config import JSONFormatter, RequestIDFilter, configure_logging
from .request_id import generate_request_id, get_request_id, set_request_id

__all__ = [
    "JSONFormatter",
    "RequestIDFilter",
    "configure_logging",
    "generate_request_id",
    "get_request_id",
    "set_request_id",
]
