"""
Wire Server process - aiohttp host for the wire handler.

Architecture invariants:
- Server is stateless (no session storage, component state travels signed)
- One asyncio task per request, no cross-request ordering
- Direct dispatch to tracked instances is not reachable over HTTP
"""

from typing import Dict, Any, Optional

from aiohttp import web

from wire.core.registry import ComponentRegistry
from wire.core.markup import renderHtml
from wire.server.wireHandler import WireHandler, Renderer
from wire.logging import getLogger


class WireServer:
    """
    Wire Server.

    Routes every request under the wire prefix to the WireHandler and
    exposes a health endpoint.
    """

    def __init__(self, config: Dict[str, Any], registry: ComponentRegistry,
                 renderer: Renderer = renderHtml):
        self.config = config
        self.log = getLogger()
        self.registry = registry

        self.wireHandler = WireHandler(
            registry,
            basePath=config.get('basePath', '/admin'),
            renderer=renderer
        )

        # aiohttp app
        self.app = web.Application()
        self._setupRoutes()

        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def _setupRoutes(self):
        """Setup aiohttp routes"""
        self.app.router.add_get('/health', self.handleHealth)

        # Everything else goes through handleRequest so the wire handler
        # answers wrong methods itself (405) instead of the router
        self.app.router.add_route('*', '/{tail:.*}', self.handleRequest)

    async def handleHealth(self, request: web.Request) -> web.Response:
        """Health check endpoint"""
        return web.json_response({
            'status': 'ok',
            'components': len(self.registry.registeredTypes)
        })

    async def handleRequest(self, request: web.Request) -> web.Response:
        """Dispatch wire requests; anything else is not ours"""
        if self.wireHandler.isWireRequest(request):
            return await self.wireHandler.handle(request)
        return web.json_response({'error': 'Not found'}, status=404)

    async def start(self):
        """Start Server"""
        self.log.info("[Server] Starting...")

        self._runner = web.AppRunner(self.app)
        await self._runner.setup()

        host = self.config.get('host', '0.0.0.0')
        port = self.config.get('port', 8080)

        self._site = web.TCPSite(self._runner, host, port)
        await self._site.start()

        self.log.info(f"[Server] Listening on {host}:{port}",
                      wirePath=self.wireHandler.wirePathPrefix,
                      components=self.registry.registeredTypes)

    async def stop(self):
        """Stop Server"""
        self.log.info("[Server] Stopping...")

        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None

        self.log.info("[Server] Stopped")
