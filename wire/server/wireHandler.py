"""
Wire request handler - the HTTP edge of the wire protocol.

Translates between the JSON envelope and the component registry, renders the
resulting component and returns its markup plus dispatched events.

Architecture invariants:
- Single error boundary: anything a component raises while being applied or
  rendered becomes a 500 here, never a crashed process
- Dispatched events are drained exactly once per request, after rendering
- Forged state is not an error: the registry silently uses zero-value state
"""

import uuid
from typing import Any, Awaitable, Callable, Optional, Union

import orjson
from aiohttp import web

from wire.core.component import InteractiveComponent, resolve
from wire.core.contracts import MalformedRequestError, WireRequest, WireResponse
from wire.core.markup import renderHtml
from wire.core.registry import ComponentRegistry
from wire.logging import getLogger, setRequestContext, clearRequestContext

WIRE_REQUEST_HEADER = 'x-wire-request'
WIRE_RESPONSE_HEADER = 'x-wire-response'

Renderer = Callable[[Any], Union[str, Awaitable[str]]]


def wireComponentId(request: web.Request) -> Optional[str]:
    """
    Component id from a wire path.

    /admin/wire/counter-1      → 'counter-1'
    /admin/wire/counter-1/x    → 'counter-1'
    """
    path = request.path
    wireIndex = path.find('/wire/')
    if wireIndex == -1:
        return None

    afterWire = path[wireIndex + len('/wire/'):]
    componentId = afterWire.split('/', 1)[0]
    return componentId or None


class WireHandler:
    """
    Handles POST {basePath}/wire/{componentId} requests.

    The registry (and through it the state codec) is injected; the renderer
    turns the tree returned by InteractiveComponent.build() into markup.
    """

    def __init__(self, registry: ComponentRegistry, basePath: str = '/admin',
                 renderer: Renderer = renderHtml):
        self.registry = registry
        self.basePath = '/' + basePath.strip('/') if basePath.strip('/') else ''
        self.renderer = renderer
        self.log = getLogger()

    @property
    def wirePathPrefix(self) -> str:
        """e.g. '/admin/wire/'"""
        return f"{self.basePath}/wire/"

    def isWireRequest(self, request: web.Request) -> bool:
        """Dispatch filter only, carries no security weight"""
        path = request.path
        if path.startswith(self.wirePathPrefix):
            return True
        return request.headers.get(WIRE_REQUEST_HEADER) == 'true' and '/wire/' in path

    async def handle(self, request: web.Request) -> web.Response:
        """
        Handle one wire round trip.

        Returns:
            200 {"html", "events"}; 400 malformed envelope; 404 unknown
            component type; 405 non-POST; 500 component failure
        """
        if request.method != 'POST':
            return web.json_response({'error': 'Method not allowed'}, status=405,
                                     headers={'Allow': 'POST'})

        try:
            wireRequest = WireRequest.fromDict(orjson.loads(await request.read()))
        except orjson.JSONDecodeError:
            self.log.debug("[Wire] Rejected request: body is not JSON")
            return web.json_response({'error': 'Request body must be JSON'}, status=400)
        except MalformedRequestError as e:
            self.log.debug(f"[Wire] Rejected request: {e}")
            return web.json_response({'error': str(e)}, status=400)

        setRequestContext(wireRequest.typeName, uuid.uuid4().hex[:12])
        try:
            component = await self.registry.handleWireRequest(wireRequest)
            if component is None:
                return web.json_response(
                    {'error': f"Component not found: {wireRequest.typeName}"}, status=404)

            html = await self._renderComponent(component)

            events = component.drainDispatchedEvents()
            if events:
                self.log.info(f"[Wire] Dispatched events: {[e.name for e in events]}")

            return web.Response(
                body=orjson.dumps(WireResponse(html, events).toDict()),
                content_type='application/json',
                charset='utf-8',
                headers={WIRE_RESPONSE_HEADER: 'true'}
            )

        except Exception as e:
            self.log.error(f"[Wire] Request failed: {e}", exc_info=True)
            return web.json_response({'error': f"Wire request failed: {e}"}, status=500)
        finally:
            clearRequestContext()

    async def renderInitial(self, component: InteractiveComponent) -> Optional[str]:
        """
        First render of a component for a full page.

        Returns None when component.canView() is False; callers then leave
        the component out of the page.
        """
        if not component.canView():
            return None
        return await self._renderComponent(component)

    async def _renderComponent(self, component: InteractiveComponent) -> str:
        # beforeRender runs after the action so freshly loaded data reflects it
        await resolve(component.beforeRender())
        tree = component.build(self.registry.codec)
        return await resolve(self.renderer(tree))
