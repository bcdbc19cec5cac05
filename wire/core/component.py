"""
Interactive component contract.

An InteractiveComponent keeps its state on the server between renders, but
the server holds no session: every wire request rebuilds the component from
its factory and restores its state from the signed token the browser sends
back.

Lifecycle (hooks are optional, sync or async):
1. mount()          - once, when the registry creates a tracked instance
2. prepare()        - every request, before event/action handling;
                      registers the action table for this request
3. updated(prop)    - after each single property update
4. beforeRender()   - right before markup generation; load data here so it
                      reflects the action just dispatched

Exceptions raised by hooks or handlers are NOT caught here. The wire handler
is the single error boundary.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING, Union

from wire.core.contracts import WireEvent
from wire.core.markup import Element, Node

if TYPE_CHECKING:
    from wire.core.componentState import StateCodec

# Handlers may be plain functions or coroutine functions
ActionHandler = Callable[[List[Any]], Union[None, Awaitable[None]]]
ListenerHandler = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


async def resolve(result: Any) -> Any:
    """Await result if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(result):
        return await result
    return result


class InteractiveComponent(ABC):
    """
    Base class for server-driven interactive components.

    Subclasses that define __init__ must call super().__init__().
    """

    def __init__(self):
        self._dispatchedEvents: List[WireEvent] = []

    @property
    @abstractmethod
    def componentId(self) -> str:
        """Stable identity used for routing and state tagging"""

    @property
    def componentName(self) -> str:
        """Registration name when none is given explicitly"""
        return type(self).__name__

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self):
        pass

    def prepare(self):
        pass

    def updated(self, property: str):
        pass

    def beforeRender(self):
        pass

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @abstractmethod
    def getState(self) -> Dict[str, Any]:
        """Snapshot of every property synchronized with the client"""

    @abstractmethod
    def setState(self, state: Dict[str, Any]):
        """Restore properties from a snapshot. setState(getState()) must be a no-op."""

    def restoreState(self, token: str, codec: 'StateCodec') -> bool:
        """
        Restore state from a signed token.

        A forged or malformed token leaves the component untouched.
        Returns True if state was applied.
        """
        state = codec.deserialize(token)
        if state is None:
            return False
        self.setState(state)
        return True

    async def updateProperty(self, property: str, value: Any):
        """Set one property through setState, then run the updated() hook"""
        state = self.getState()
        state[property] = value
        self.setState(state)
        await resolve(self.updated(property))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    @abstractmethod
    def getActions(self) -> Dict[str, ActionHandler]:
        """Action name → handler(params). Usually filled in prepare()."""

    async def dispatchAction(self, action: str, params: Optional[List[Any]] = None) -> bool:
        """
        Invoke the handler registered for action.

        Returns False (and does nothing) if no handler is registered.
        """
        handler = self.getActions().get(action)
        if handler is None:
            return False
        await resolve(handler(list(params) if params else []))
        return True

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def getListeners(self) -> Dict[str, ListenerHandler]:
        """Event name → handler(payload) for events from other components"""
        return {}

    async def handleEvent(self, event: str, payload: Dict[str, Any]) -> bool:
        """Returns True if a listener handled the event"""
        handler = self.getListeners().get(event)
        if handler is None:
            return False
        await resolve(handler(payload))
        return True

    def dispatch(self, event: str, payload: Optional[Dict[str, Any]] = None):
        """
        Queue an event for the client.

        Nothing is delivered to other components here; the browser replays
        the event as the incoming event of their next wire request.
        """
        self._dispatchedEvents.append(WireEvent(event, dict(payload) if payload else {}))

    def getDispatchedEvents(self) -> Tuple[WireEvent, ...]:
        return tuple(self._dispatchedEvents)

    def clearDispatchedEvents(self):
        self._dispatchedEvents.clear()

    def drainDispatchedEvents(self) -> List[WireEvent]:
        """Read and clear the pending events"""
        events = list(self._dispatchedEvents)
        self._dispatchedEvents.clear()
        return events

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @abstractmethod
    def render(self) -> Node:
        """Markup for the current state. Must not mutate state."""

    def build(self, codec: 'StateCodec') -> Element:
        """
        Wrap render() output with the attributes the client runtime needs:
        component id and name, a freshly signed state token and the names of
        the events this component listens to.
        """
        attributes = {
            'id': f"wire-{self.componentId}",
            'wire:id': self.componentId,
            'wire:name': self.componentName,
            'wire:initial-data': codec.serialize(self.componentId, self.getState()),
        }
        listenerNames = list(self.getListeners().keys())
        if listenerNames:
            attributes['wire:listeners'] = ','.join(listenerNames)

        return Element('div', attributes, [self.render()])

    def canView(self) -> bool:
        """Authorization/visibility gate; False means do not render at all"""
        return True


class SimpleInteractiveComponent(InteractiveComponent):
    """
    Interactive component backed by a plain dict of properties.

        class Counter(SimpleInteractiveComponent):
            componentId = 'counter'

            def __init__(self):
                super().__init__()
                self.property('count', 0)

            def prepare(self):
                self.action('increment', self.increment)
    """

    def __init__(self):
        super().__init__()
        self._state: Dict[str, Any] = {}
        self._actions: Dict[str, ActionHandler] = {}

    def property(self, name: str, initialValue: Any) -> Any:
        """Declare a property with its zero value; returns the current value"""
        self._state.setdefault(name, initialValue)
        return self._state[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self._state.get(name, default)

    def set(self, name: str, value: Any):
        self._state[name] = value

    def action(self, name: str, handler: Callable[..., Any]):
        """Register handler; action params are passed positionally"""
        self._actions[name] = lambda params: handler(*params)

    def getState(self) -> Dict[str, Any]:
        return dict(self._state)

    def setState(self, state: Dict[str, Any]):
        self._state.update(state)

    def getActions(self) -> Dict[str, ActionHandler]:
        return dict(self._actions)
