import logging
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def as_http_500(e: Exception, context: str = "request") -> HTTPException:
    """Log the exception with traceback and return a generic 500 HTTPException (no internal details leaked).
    Why available: Upload and metadata endpoints share it so filesystem errors never reach clients verbatim."""
    logger.error("%s failed: %s", context, e, exc_info=e)
    return HTTPException(status_code=500, detail="Internal server error")
