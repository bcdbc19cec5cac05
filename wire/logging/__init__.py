"""
Wire Logging - Hierarchical structured logger with automatic name detection.

API:
    from wire.logging import getLogger

    # Class-level (auto-detect once in __init__)
    class ComponentRegistry:
        def __init__(self):
            self.log = getLogger()  # Auto: 'wire.core.registry.ComponentRegistry'

        def registerFactory(self, typeName, factory):
            self.log.info("Registered", typeName=typeName)

    # Global configuration (optional, once at app startup)
    from wire.logging import configureLogging
    configureLogging(logDir='./logs', level='DEBUG')
"""

from .logger import getLogger, configureLogging
from .context import (
    setRequestContext,
    getRequestContext,
    clearRequestContext,
    installRequestContextFilter
)

__all__ = [
    'getLogger',
    'configureLogging',
    'setRequestContext',
    'getRequestContext',
    'clearRequestContext',
    'installRequestContextFilter'
]
