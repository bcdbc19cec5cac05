"""
Package init for wire.server
"""

from wire.server.server import WireServer
from wire.server.wireHandler import WireHandler, wireComponentId

__all__ = ['WireServer', 'WireHandler', 'wireComponentId']
