"""
Wire Handler Runtime Tests

End-to-end wire round trips against an in-process aiohttp server.

Coverage:
1. Counter increment scenario (200, markup reflects new state)
2. Forged signature degrades to zero-value state (200)
3. Unregistered component type (404)
4. Dispatched events returned exactly once
5. Method / envelope validation (405, 400)
6. Component failures become 500 without killing the server

Run: python -m pytest test/test_wire_handler.py -v
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import orjson
import pytest
from aiohttp.test_utils import TestClient, TestServer, make_mocked_request

from wire.core.component import SimpleInteractiveComponent
from wire.core.componentState import StateCodec
from wire.core.markup import RawHtml
from wire.core.registry import ComponentRegistry
from wire.server.server import WireServer
from wire.server.wireHandler import WireHandler, wireComponentId
from wire.components import Counter


WIRE_URL = "/admin/wire/counter"


class Notifier(SimpleInteractiveComponent):
    """Dispatches 'refresh' from its only action"""

    componentId = 'notifier'

    def prepare(self):
        self.action('notify', lambda: self.dispatch('refresh', {}))

    def render(self):
        return RawHtml('<em>notifier</em>')


class Broken(SimpleInteractiveComponent):
    """Fails in whichever phase it is told to"""

    componentId = 'broken'

    def __init__(self):
        super().__init__()
        self.property('failIn', '')

    def prepare(self):
        self.action('fail', self.fail)

    def fail(self):
        raise RuntimeError('action exploded')

    def beforeRender(self):
        if self.get('failIn') == 'beforeRender':
            raise RuntimeError('beforeRender exploded')

    def render(self):
        return 'broken'


class Hidden(SimpleInteractiveComponent):
    componentId = 'hidden'

    def canView(self):
        return False

    def render(self):
        return 'secret'


class Loader(SimpleInteractiveComponent):
    """Loads its items in beforeRender, after the action ran"""

    componentId = 'loader'

    def __init__(self):
        super().__init__()
        self.property('filter', 'all')
        self.items = []

    def prepare(self):
        self.action('only', lambda value: self.set('filter', value))

    async def beforeRender(self):
        self.items = [f"{self.get('filter')}-{n}" for n in range(2)]

    def render(self):
        return ','.join(self.items)


@pytest.fixture
def codec():
    return StateCodec("handler-test-secret")


@pytest.fixture
def registry(codec):
    registry = ComponentRegistry(codec)
    registry.registerFactory('counter', lambda: Counter('counter-1'))
    registry.registerFactory('notifier', Notifier)
    registry.registerFactory('broken', Broken)
    registry.registerFactory('loader', Loader)
    return registry


@pytest.fixture
def server(registry):
    return WireServer({'basePath': '/admin'}, registry)


async def post(server, envelope, url=WIRE_URL):
    async with TestClient(TestServer(server.app)) as client:
        resp = await client.post(url, data=orjson.dumps(envelope))
        body = await resp.read()
        return resp, body


class TestScenarios:
    """Example round trips"""

    @pytest.mark.asyncio
    async def test_increment(self, server, codec):
        resp, body = await post(server, {
            'name': 'counter',
            'state': codec.serialize('counter-1', {'count': 0}),
            'action': 'increment'
        })
        assert resp.status == 200
        assert resp.headers['x-wire-response'] == 'true'
        assert resp.content_type == 'application/json'

        data = orjson.loads(body)
        assert '<span class="count">1</span>' in data['html']
        assert data['events'] == [{'name': 'count-changed', 'payload': {'count': 1}}]

    @pytest.mark.asyncio
    async def test_response_carries_new_signed_state(self, server, codec):
        resp, body = await post(server, {
            'name': 'counter',
            'state': codec.serialize('counter-1', {'count': 5}),
            'action': 'increment'
        })
        html = orjson.loads(body)['html']
        token = html.split('wire:initial-data="')[1].split('"')[0]
        assert codec.deserialize(token) == {'count': 6, 'step': 1}

    @pytest.mark.asyncio
    async def test_forged_signature_resets_state(self, server, codec):
        token = codec.serialize('counter-1', {'count': 40})
        resp, body = await post(server, {
            'name': 'counter',
            'state': token.split('.')[0] + '.XXXX',
            'action': 'increment'
        })
        assert resp.status == 200
        assert '<span class="count">1</span>' in orjson.loads(body)['html']

    @pytest.mark.asyncio
    async def test_state_without_action_renders(self, server, codec):
        resp, body = await post(server, {
            'name': 'counter',
            'state': codec.serialize('counter-1', {'count': 9}),
        })
        assert resp.status == 200
        assert '<span class="count">9</span>' in orjson.loads(body)['html']

    @pytest.mark.asyncio
    async def test_unregistered_type_not_found(self, server):
        resp, body = await post(server, {'name': 'unregistered-type', 'state': '...', 'action': 'x'})
        assert resp.status == 404
        assert 'unregistered-type' in orjson.loads(body)['error']

    @pytest.mark.asyncio
    async def test_dispatched_event_returned_once(self, server, codec):
        resp, body = await post(server, {
            'name': 'notifier',
            'state': codec.serialize('notifier', {}),
            'action': 'notify'
        })
        data = orjson.loads(body)
        assert data['events'] == [{'name': 'refresh', 'payload': {}}]
        assert '<em>notifier</em>' in data['html']

    @pytest.mark.asyncio
    async def test_unknown_action_succeeds_unchanged(self, server, codec):
        resp, body = await post(server, {
            'name': 'counter',
            'state': codec.serialize('counter-1', {'count': 3}),
            'action': 'doesNotExist'
        })
        data = orjson.loads(body)
        assert resp.status == 200
        assert '<span class="count">3</span>' in data['html']
        assert data['events'] == []

    @pytest.mark.asyncio
    async def test_models_and_event(self, server, codec):
        resp, body = await post(server, {
            'name': 'counter',
            'state': codec.serialize('counter-1', {'count': 3}),
            'models': {'step': 10},
            'event': {'name': 'counter-reset', 'payload': {}},
            'action': 'increment',
        })
        data = orjson.loads(body)
        assert '<span class="count">10</span>' in data['html']
        assert [e['payload']['count'] for e in data['events']] == [0, 10]

    @pytest.mark.asyncio
    async def test_oversized_count_keeps_current_value(self, server, codec):
        resp, body = await post(server, {
            'name': 'counter',
            'state': codec.serialize('counter-1', {'count': 2}),
            'action': 'setCount',
            'params': ['123456789012345678901234567890']
        })
        assert resp.status == 200
        data = orjson.loads(body)
        assert '<span class="count">2</span>' in data['html']
        assert data['events'] == [{'name': 'count-changed', 'payload': {'count': 2}}]

    @pytest.mark.asyncio
    async def test_before_render_sees_action_result(self, server, codec):
        resp, body = await post(server, {
            'name': 'loader',
            'state': codec.serialize('loader', {'filter': 'all'}),
            'action': 'only',
            'params': ['open']
        })
        assert 'open-0,open-1' in orjson.loads(body)['html']


class TestValidation:
    """Method and envelope checks"""

    @pytest.mark.asyncio
    async def test_get_not_allowed(self, server):
        async with TestClient(TestServer(server.app)) as client:
            resp = await client.get(WIRE_URL)
            assert resp.status == 405

    @pytest.mark.asyncio
    async def test_body_not_json(self, server):
        async with TestClient(TestServer(server.app)) as client:
            resp = await client.post(WIRE_URL, data=b'{not json')
            assert resp.status == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("envelope", [
        [],
        {},
        {'name': 'counter'},
        {'state': 'x.y'},
        {'name': 'counter', 'state': 5},
        {'name': 'counter', 'state': 'x.y', 'params': 'notalist'},
        {'name': 'counter', 'state': 'x.y', 'models': [1]},
        {'name': 'counter', 'state': 'x.y', 'action': 3},
        {'name': 'counter', 'state': 'x.y', 'event': 'refresh'},
    ])
    async def test_malformed_envelope(self, server, envelope):
        resp, body = await post(server, envelope)
        assert resp.status == 400
        assert 'error' in orjson.loads(body)


class TestErrorBoundary:
    """Component failures become 500"""

    @pytest.mark.asyncio
    async def test_action_exception(self, server, codec):
        resp, body = await post(server, {
            'name': 'broken',
            'state': codec.serialize('broken', {}),
            'action': 'fail'
        })
        assert resp.status == 500
        assert 'action exploded' in orjson.loads(body)['error']

    @pytest.mark.asyncio
    async def test_before_render_exception(self, server, codec):
        resp, body = await post(server, {
            'name': 'broken',
            'state': codec.serialize('broken', {'failIn': 'beforeRender'}),
        })
        assert resp.status == 500

    @pytest.mark.asyncio
    async def test_renderer_exception(self, registry, codec):
        def failingRenderer(tree):
            raise ValueError('renderer exploded')

        server = WireServer({'basePath': '/admin'}, registry, renderer=failingRenderer)
        resp, body = await post(server, {'name': 'counter', 'state': codec.serialize('counter-1', {})})
        assert resp.status == 500

    @pytest.mark.asyncio
    async def test_server_keeps_serving_after_failure(self, server, codec):
        async with TestClient(TestServer(server.app)) as client:
            failed = await client.post(WIRE_URL, data=orjson.dumps({
                'name': 'broken', 'state': codec.serialize('broken', {}), 'action': 'fail'}))
            assert failed.status == 500

            ok = await client.post(WIRE_URL, data=orjson.dumps({
                'name': 'counter', 'state': codec.serialize('counter-1', {}), 'action': 'increment'}))
            assert ok.status == 200


class TestEventBuffer:
    """Events drained exactly once, after rendering"""

    @pytest.mark.asyncio
    async def test_buffer_empty_after_handle(self, registry, codec):
        captured = []

        def capturingFactory():
            component = Notifier()
            captured.append(component)
            return component

        registry.registerFactory('notifier', capturingFactory)
        server = WireServer({'basePath': '/admin'}, registry)

        resp, body = await post(server, {
            'name': 'notifier',
            'state': codec.serialize('notifier', {}),
            'action': 'notify'
        })
        assert resp.status == 200
        assert orjson.loads(body)['events'] == [{'name': 'refresh', 'payload': {}}]

        component = captured[0]
        assert component.getDispatchedEvents() == ()
        assert component.drainDispatchedEvents() == []

    @pytest.mark.asyncio
    async def test_events_not_replayed_on_next_request(self, server, codec):
        async with TestClient(TestServer(server.app)) as client:
            envelope = {'name': 'notifier', 'state': codec.serialize('notifier', {})}
            first = await client.post(WIRE_URL, data=orjson.dumps({**envelope, 'action': 'notify'}))
            second = await client.post(WIRE_URL, data=orjson.dumps(envelope))

            assert len((await first.json())['events']) == 1
            assert (await second.json())['events'] == []


class TestRouting:
    """Wire path recognition"""

    def test_is_wire_request_by_prefix(self, registry):
        handler = WireHandler(registry, basePath='/admin')
        assert handler.isWireRequest(make_mocked_request('POST', '/admin/wire/counter'))
        assert not handler.isWireRequest(make_mocked_request('POST', '/admin/users'))
        assert not handler.isWireRequest(make_mocked_request('POST', '/other/wire/counter'))

    def test_is_wire_request_by_header(self, registry):
        handler = WireHandler(registry, basePath='/admin')
        request = make_mocked_request('POST', '/other/wire/counter', headers={'x-wire-request': 'true'})
        assert handler.isWireRequest(request)

    def test_base_path_normalized(self, registry):
        assert WireHandler(registry, basePath='admin/').wirePathPrefix == '/admin/wire/'
        assert WireHandler(registry, basePath='/').wirePathPrefix == '/wire/'

    def test_wire_component_id(self):
        assert wireComponentId(make_mocked_request('POST', '/admin/wire/counter-1')) == 'counter-1'
        assert wireComponentId(make_mocked_request('POST', '/admin/wire/counter-1/extra')) == 'counter-1'
        assert wireComponentId(make_mocked_request('POST', '/admin/users')) is None
        assert wireComponentId(make_mocked_request('POST', '/admin/wire/')) is None

    @pytest.mark.asyncio
    async def test_non_wire_path_not_found(self, server):
        async with TestClient(TestServer(server.app)) as client:
            resp = await client.post('/admin/users', data=b'{}')
            assert resp.status == 404

    @pytest.mark.asyncio
    async def test_health(self, server):
        async with TestClient(TestServer(server.app)) as client:
            resp = await client.get('/health')
            assert resp.status == 200
            data = await resp.json()
            assert data['status'] == 'ok'
            assert data['components'] == 4


class TestInitialRender:
    """renderInitial for full-page renders"""

    @pytest.mark.asyncio
    async def test_render_initial(self, registry):
        handler = WireHandler(registry)
        counter = await registry.createInstance('counter')
        html = await handler.renderInitial(counter)
        assert 'wire:id="counter-1"' in html

    @pytest.mark.asyncio
    async def test_hidden_component_not_rendered(self, registry):
        handler = WireHandler(registry)
        assert await handler.renderInitial(Hidden()) is None
