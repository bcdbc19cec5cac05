"""
Wire - server-driven reactive component protocol.

The browser holds no component state of its own. Every round trip carries
the component's state in a signed token; the server rebuilds the component,
applies the requested updates, event and action, renders it and returns the
new markup plus any events the component dispatched.

Packages:
    wire.core    - state codec, component contract, registry, envelopes
    wire.server  - aiohttp wire handler and server
    wire.logging - structured hierarchical logging
"""

__version__ = "1.0.0"
