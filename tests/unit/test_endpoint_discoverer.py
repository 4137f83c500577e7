import pytest

from quota_watcher.connection_client import ConnectionClient
from quota_watcher.endpoint_discoverer import PROBE_PATH, EndpointDiscoverer
from quota_watcher.events import EventType
from quota_watcher.models import ConnectionInfo
from quota_watcher.process_inspector import ProcessInspector
from quota_watcher.process_inspector_helpers import ProcessCandidate
from tests.helpers.quota_fakes import FakeProcessStrategy, FakeResponse, FakeSession

PROCESS_NAME = "language_server_linux_x64"
COMMAND_LINE = (
    "/opt/Antigravity/bin/language_server_linux_x64 "
    "--extension_server_port=51000 --connect_port=51001 --csrf_token=abcDEF123456"
)


def _probe_url(port: int) -> str:
    return f"https://127.0.0.1:{port}{PROBE_PATH}"


def _discoverer(strategy, client, bus=None) -> EndpointDiscoverer:
    return EndpointDiscoverer(ProcessInspector(strategy, process_name=PROCESS_NAME), client, bus=bus)


def _strategy(ports=None) -> FakeProcessStrategy:
    return FakeProcessStrategy(
        [ProcessCandidate(pid=4242, name=PROCESS_NAME, command_line=COMMAND_LINE)],
        {4242: ports or []},
    )


@pytest.mark.asyncio
async def test_connect_port_is_probed_first(client, fake_session, bus, recorder):
    fake_session.queue(_probe_url(51001), FakeResponse(payload={"users": []}))

    info = await _discoverer(_strategy([51002]), client, bus).detect_port()

    assert info == ConnectionInfo(connect_port=51001, csrf_token="abcDEF123456", http_fallback_port=51000)
    assert info.confidence == "high"
    assert [request["url"] for request in fake_session.requests] == [_probe_url(51001)]
    assert recorder.names() == [EventType.DETECT_START, EventType.DETECT_SUCCESS]
    assert recorder.of(EventType.DETECT_SUCCESS) == [info]


@pytest.mark.asyncio
async def test_later_candidate_wins_when_connect_port_fails():
    session = FakeSession()
    session.queue(_probe_url(51001), FakeResponse(status=500))
    session.queue(_probe_url(51000), FakeResponse(body=b"not json"))
    session.queue(_probe_url(51002), FakeResponse(payload={}))
    client = ConnectionClient(session_factory=lambda timeout: session)

    info = await _discoverer(_strategy([51002]), client).detect_port()

    assert info is not None
    assert info.connect_port == 51002
    assert info.http_fallback_port == 51001
    assert [request["url"] for request in session.requests] == [
        _probe_url(51001),
        _probe_url(51000),
        _probe_url(51002),
    ]


@pytest.mark.asyncio
async def test_repeated_detection_is_stable(client, fake_session):
    discoverer = _discoverer(_strategy(), client)

    first = await discoverer.detect_port()
    second = await discoverer.detect_port()

    assert first == second


@pytest.mark.asyncio
async def test_missing_process_emits_failure(client, fake_session, bus, recorder):
    info = await _discoverer(FakeProcessStrategy(), client, bus).detect_port()

    assert info is None
    assert fake_session.requests == []
    failures = recorder.of(EventType.DETECT_FAILURE)
    assert len(failures) == 1
    assert "not found" in str(failures[0])


@pytest.mark.asyncio
async def test_no_answering_port_is_failure(bus, recorder):
    session = FakeSession(responder=lambda url: FakeResponse(status=503))
    client = ConnectionClient(session_factory=lambda timeout: session)

    assert await _discoverer(_strategy([51005]), client, bus).detect_port() is None
    assert len(session.requests) == 3
    assert recorder.names()[-1] is EventType.DETECT_FAILURE
