import functools
import inspect

from fastapi import HTTPException

from cardex.errors import CardexError, KnowledgeTableUnavailable, MalformedInput
from cardex.utils.logger import api_logger


def _log_http_exception(he: HTTPException):
    status = getattr(he, "status_code", None)
    detail = getattr(he, "detail", None)
    if status and status >= 500:
        api_logger.exception("HTTPException raised (status=%s): %s", status, detail)
    else:
        api_logger.warning("HTTPException raised (status=%s): %s", status, detail)


def _to_http_exception(e: Exception, default_status: int, default_detail: str) -> HTTPException:
    if isinstance(e, MalformedInput):
        api_logger.warning("Malformed input: %s", e)
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, KnowledgeTableUnavailable):
        api_logger.exception("Knowledge source unavailable: %s", e)
        return HTTPException(status_code=503, detail=f"Knowledge source unavailable: {e.source}")
    if isinstance(e, CardexError):
        api_logger.exception("Extraction error in handler: %s", e)
    else:
        api_logger.exception("Unhandled exception in handler: %s", e)
    # Internal error details never reach the client
    return HTTPException(status_code=default_status, detail=default_detail)


# -------------------------
# safe_handler decorator (sync & async aware)
# -------------------------
def safe_handler(default_status: int = 500, default_detail: str = "Unexpected error"):
    """
    Decorator that:
    - logs HTTPException (WARNING for 4xx, ERROR with stack for 5xx) and re-raises it
    - maps MalformedInput to 422 and KnowledgeTableUnavailable to 503
    - logs any other exception with its stack trace and converts it to
      HTTPException(default_status)
    Supports both sync and async handlers.
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except HTTPException as he:
                    _log_http_exception(he)
                    raise
                except Exception as e:
                    raise _to_http_exception(e, default_status, default_detail) from e

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except HTTPException as he:
                _log_http_exception(he)
                raise
            except Exception as e:
                raise _to_http_exception(e, default_status, default_detail) from e

        return sync_wrapper

    return decorator
