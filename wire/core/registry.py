"""
Component Registry - factories, tracked instances and the wire request phases.

Two tables, kept apart:
- factories: typeName → zero-argument factory, written at boot
- instances: instanceId → persistent component, written only by explicit
  createInstance/registerInstance/removeInstance calls

Ephemeral components built by handleWireRequest are never put in the
instance table, so no later request can reach them.

Direct dispatch (dispatchAction/updateProperty by instance id) skips the
signed-token check and is meant for trusted server-side code only; the wire
server does not route HTTP requests to it.
"""

import threading
from typing import Callable, Dict, List, Optional

from wire.core.component import InteractiveComponent, resolve
from wire.core.componentState import StateCodec
from wire.core.contracts import WireRequest
from wire.logging import getLogger

ComponentFactory = Callable[[], InteractiveComponent]


class ComponentRegistry:
    """
    Registry of interactive component types and tracked instances.

    Both tables are guarded by one lock. Hooks and handlers never run while
    it is held.
    """

    def __init__(self, codec: StateCodec):
        self.codec = codec
        self.log = getLogger()
        self._lock = threading.Lock()

        # typeName → factory
        self._factories: Dict[str, ComponentFactory] = {}

        # instanceId → persistent component
        self._instances: Dict[str, InteractiveComponent] = {}

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def registerFactory(self, typeName: str, factory: ComponentFactory):
        """Register a factory for typeName. Re-registering replaces it."""
        with self._lock:
            replaced = typeName in self._factories
            self._factories[typeName] = factory
        self.log.info(f"[Registry] Registered factory: {typeName}", replaced=replaced)

    def registerComponent(self, factory: ComponentFactory, name: Optional[str] = None) -> str:
        """
        Register factory under name, or under the componentName of an
        instance it builds (the class name unless overridden).

        Returns the registration name.
        """
        typeName = name or factory().componentName
        self.registerFactory(typeName, factory)
        return typeName

    def hasFactory(self, typeName: str) -> bool:
        with self._lock:
            return typeName in self._factories

    @property
    def registeredTypes(self) -> List[str]:
        with self._lock:
            return list(self._factories.keys())

    def _getFactory(self, typeName: str) -> Optional[ComponentFactory]:
        with self._lock:
            return self._factories.get(typeName)

    # ------------------------------------------------------------------
    # Persistent instances
    # ------------------------------------------------------------------

    async def createInstance(self, typeName: str, instanceId: Optional[str] = None) -> Optional[InteractiveComponent]:
        """
        Build a component from its factory, mount it and track it.

        Args:
            typeName: Registered factory name
            instanceId: Tracking id (default: the component's componentId)

        Returns:
            The mounted component, or None if no factory is registered
        """
        factory = self._getFactory(typeName)
        if factory is None:
            self.log.info(f"[Registry] No factory registered for '{typeName}'")
            return None

        component = factory()
        await resolve(component.mount())

        trackedId = instanceId or component.componentId
        with self._lock:
            self._instances[trackedId] = component
        self.log.debug(f"[Registry] Created instance: {trackedId}", typeName=typeName)
        return component

    def registerInstance(self, component: InteractiveComponent):
        """Track a component built outside the registry, under its componentId"""
        with self._lock:
            self._instances[component.componentId] = component

    def getInstance(self, instanceId: str) -> Optional[InteractiveComponent]:
        with self._lock:
            return self._instances.get(instanceId)

    def removeInstance(self, instanceId: str) -> bool:
        """Stop tracking an instance. Returns False if it was not tracked."""
        with self._lock:
            return self._instances.pop(instanceId, None) is not None

    @property
    def activeInstanceIds(self) -> List[str]:
        with self._lock:
            return list(self._instances.keys())

    def clearInstances(self):
        with self._lock:
            self._instances.clear()

    def clearAll(self):
        with self._lock:
            self._factories.clear()
            self._instances.clear()

    # ------------------------------------------------------------------
    # Direct dispatch (trusted, server-side only)
    # ------------------------------------------------------------------

    async def dispatchAction(self, instanceId: str, action: str, params: Optional[list] = None) -> Optional[InteractiveComponent]:
        """
        Run an action on a tracked instance.

        Returns the instance (even if the action is unknown), or None if no
        instance is tracked under instanceId.
        """
        component = self.getInstance(instanceId)
        if component is None:
            self.log.info(f"[Registry] No instance found for '{instanceId}'")
            return None

        handled = await component.dispatchAction(action, params)
        if not handled:
            self.log.info(f"[Registry] Action '{action}' not found on '{instanceId}'")
        return component

    async def updateProperty(self, instanceId: str, property: str, value) -> Optional[InteractiveComponent]:
        """Set a property on a tracked instance. None if not tracked."""
        component = self.getInstance(instanceId)
        if component is None:
            self.log.info(f"[Registry] No instance found for '{instanceId}'")
            return None

        await component.updateProperty(property, value)
        return component

    # ------------------------------------------------------------------
    # Wire requests
    # ------------------------------------------------------------------

    async def handleWireRequest(self, request: WireRequest) -> Optional[InteractiveComponent]:
        """
        Rebuild a component from a wire request and apply it.

        Phases, in order:
        1. resolve the factory (None if unregistered)
        2. construct a fresh, untracked instance
        3. restore state from the signed token (forged → zero-value state)
        4. apply property updates in envelope order, each with its updated() hook
        5. prepare()
        6. deliver the incoming event, if a listener exists for it
        7. dispatch the action, if a handler was registered for it
        8. return the instance for rendering
        """
        factory = self._getFactory(request.typeName)
        if factory is None:
            self.log.info(f"[Registry] No factory registered for '{request.typeName}'")
            return None

        component = factory()

        if not component.restoreState(request.state, self.codec):
            self.log.debug("[Registry] State not restored, using zero-value state",
                           typeName=request.typeName)

        for property, value in request.propertyUpdates.items():
            await component.updateProperty(property, value)

        await resolve(component.prepare())

        if request.incomingEvent is not None:
            event = request.incomingEvent
            handled = await component.handleEvent(event.name, event.payload)
            if not handled:
                self.log.debug(f"[Registry] No listener for event '{event.name}'",
                               typeName=request.typeName)

        if request.action is not None:
            handled = await component.dispatchAction(request.action, request.params)
            if not handled:
                self.log.info(f"[Registry] Action '{request.action}' not handled",
                              typeName=request.typeName)

        return component
