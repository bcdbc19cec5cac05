"""
Wire contracts for browser ↔ server round trips.

These dataclasses define the request/response envelopes of the wire
protocol. Envelopes travel as JSON and are parsed/serialized via orjson.

Request envelope (client → server):
    {
      "name": "<typeName>",
      "state": "<encoded>.<signature>",
      "action": "<actionName>",              # optional
      "params": [...],                       # optional
      "models": {"<property>": <value>},     # optional
      "event": {"name": "...", "payload": {...}}   # optional
    }

Response envelope (server → client):
    {"html": "<markup>", "events": [{"name": "...", "payload": {...}}]}

Architecture invariants:
- Server is stateless: everything a request needs is in the envelope
- The signed state token is the only channel for state between requests
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


class MalformedRequestError(ValueError):
    """Envelope is not shaped like a wire request"""


@dataclass
class WireEvent:
    """Named payload emitted by a component during action handling"""
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def toDict(self) -> Dict[str, Any]:
        return {'name': self.name, 'payload': self.payload}


@dataclass
class WireRequest:
    """Parsed wire request envelope"""
    typeName: str
    state: str
    action: Optional[str] = None
    params: List[Any] = field(default_factory=list)
    propertyUpdates: Dict[str, Any] = field(default_factory=dict)  # applied in insertion order
    incomingEvent: Optional[WireEvent] = None

    @classmethod
    def fromDict(cls, data: Any) -> 'WireRequest':
        """
        Build a WireRequest from a decoded JSON envelope.

        Raises:
            MalformedRequestError: missing name/state or mistyped optional fields
        """
        if not isinstance(data, dict):
            raise MalformedRequestError("Request body must be a JSON object")

        typeName = data.get('name')
        state = data.get('state')
        if not isinstance(typeName, str) or not typeName or not isinstance(state, str):
            raise MalformedRequestError("Missing component name or state")

        action = data.get('action')
        if action is not None and not isinstance(action, str):
            raise MalformedRequestError("'action' must be a string")

        params = data.get('params')
        if params is None:
            params = []
        elif not isinstance(params, list):
            raise MalformedRequestError("'params' must be a list")

        models = data.get('models')
        if models is None:
            models = {}
        elif not isinstance(models, dict):
            raise MalformedRequestError("'models' must be an object")

        incomingEvent = None
        event = data.get('event')
        if event is not None:
            if not isinstance(event, dict):
                raise MalformedRequestError("'event' must be an object")
            payload = event.get('payload')
            if payload is not None and not isinstance(payload, dict):
                raise MalformedRequestError("'event.payload' must be an object")
            # An event without a name cannot match any listener, drop it
            if isinstance(event.get('name'), str):
                incomingEvent = WireEvent(event['name'], payload or {})

        return cls(
            typeName=typeName,
            state=state,
            action=action,
            params=params,
            propertyUpdates=models,
            incomingEvent=incomingEvent
        )


@dataclass
class WireResponse:
    """Rendered markup plus the events dispatched during the request"""
    html: str
    events: List[WireEvent] = field(default_factory=list)

    def toDict(self) -> Dict[str, Any]:
        return {
            'html': self.html,
            'events': [e.toDict() for e in self.events]
        }
