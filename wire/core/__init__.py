"""
Wire Core Package

State codec, component contract, component registry and wire envelopes.

Architecture Invariants:
- No per-user session in server memory; state travels signed in the envelope
- A forged token degrades to zero-value state, never to an error
- Fixed request phases: restore → update → prepare → event → action
"""

from wire.core.componentState import StateCodec, generateSecretKey
from wire.core.component import InteractiveComponent, SimpleInteractiveComponent
from wire.core.contracts import WireEvent, WireRequest, WireResponse, MalformedRequestError
from wire.core.markup import Element, RawHtml, el, renderHtml
from wire.core.registry import ComponentRegistry

__all__ = [
    'StateCodec', 'generateSecretKey',
    'InteractiveComponent', 'SimpleInteractiveComponent',
    'WireEvent', 'WireRequest', 'WireResponse', 'MalformedRequestError',
    'Element', 'RawHtml', 'el', 'renderHtml',
    'ComponentRegistry'
]
