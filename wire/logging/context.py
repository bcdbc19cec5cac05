"""
Request logging context.

Stamps the wire request currently being handled (component type name and a
per-request id) onto every log record emitted while that request runs.
ContextVars keep concurrent requests on the same event loop apart.
"""

import logging
from typing import Optional
from contextvars import ContextVar

_component_name: ContextVar[Optional[str]] = ContextVar('component_name', default=None)
_request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


class RequestContextFilter(logging.Filter):
    """
    Logging filter that adds the wire request context to log records
    """

    def filter(self, record):
        componentName = _component_name.get()
        requestId = _request_id.get()

        if componentName and not hasattr(record, 'component'):
            record.component = componentName
        if requestId and not hasattr(record, 'requestId'):
            record.requestId = requestId

        return True


def setRequestContext(componentName: Optional[str], requestId: Optional[str]):
    """
    Set the context for the wire request being handled

    Args:
        componentName: Registered component type name from the envelope
        requestId: Identifier for this round trip
    """
    _component_name.set(componentName)
    _request_id.set(requestId)


def getRequestContext() -> dict:
    """Get current request context"""
    return {
        'component': _component_name.get(),
        'requestId': _request_id.get()
    }


def clearRequestContext():
    """Clear request context"""
    _component_name.set(None)
    _request_id.set(None)


def installRequestContextFilter(logger: logging.Logger):
    """Install the request context filter on a logger (once)"""
    for f in logger.filters:
        if isinstance(f, RequestContextFilter):
            return
    logger.addFilter(RequestContextFilter())
