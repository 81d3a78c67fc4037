"""Tests for the WebSocket transport against a local websockets server."""

import asyncio
import json
import logging

import pytest
import websockets

from src.conversation.chat_session import ChatSession
from src.schemas.chat_schema import ConnectionStatus
from src.transport.ws_client import open_websocket


async def _agent(ws):
    """Echo each message as a user envelope, then reply with a contact."""
    async for message in ws:
        await ws.send(json.dumps({"type": "user", "message": message}))
        await ws.send(json.dumps({
            "type": "bot",
            "message": f"<contact><fullName>{message}</fullName></contact>",
        }))


async def _wait_for(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_round_trip_with_server():
    async with websockets.serve(_agent, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = ChatSession(
            transport_factory=open_websocket,
            endpoint_for=lambda client_id: f"ws://127.0.0.1:{port}/ws/{client_id}",
        )
        session.connect()
        await _wait_for(lambda: session.status == ConnectionStatus.CONNECTED)

        assert session.send("Jane Doe")
        await _wait_for(lambda: len(session.transcript.of_kind("contact")) == 1)
        assert session.transcript.of_kind("contact")[0].record.full_name == "Jane Doe"
        assert session.transcript.of_kind("user")[0].text == "Jane Doe"
        assert not session.is_composing

        handle = session.handle
        session.disconnect()
        await handle.wait_closed()
        assert session.status == ConnectionStatus.DISCONNECTED


@pytest.mark.asyncio
async def test_refused_connection_reports_error_then_close():
    async with websockets.serve(_agent, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
    # Server is shut down; the port now refuses connections.
    session = ChatSession(
        transport_factory=open_websocket,
        endpoint_for=lambda client_id: f"ws://127.0.0.1:{port}/ws/{client_id}",
    )
    session.connect()
    handle = session.handle
    await handle.wait_closed()
    texts = [e.text for e in session.transcript.entries()]
    assert texts == ["Connection error occurred", "Disconnected from server"]
    assert session.status == ConnectionStatus.DISCONNECTED


@pytest.mark.asyncio
async def test_disconnect_before_open_cancels():
    async with websockets.serve(_agent, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = ChatSession(
            transport_factory=open_websocket,
            endpoint_for=lambda client_id: f"ws://127.0.0.1:{port}/ws/{client_id}",
        )
        session.connect()
        handle = session.handle
        session.disconnect()
        await handle.wait_closed()
        assert session.status == ConnectionStatus.DISCONNECTED
        assert [e.text for e in session.transcript.entries()] == ["Disconnected from server"]


@pytest.mark.asyncio
async def test_failing_renderer_keeps_connection_open():
    async with websockets.serve(_agent, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = ChatSession(
            transport_factory=open_websocket,
            endpoint_for=lambda client_id: f"ws://127.0.0.1:{port}/ws/{client_id}",
        )

        def broken_renderer(entry):
            if entry.kind == "contact":
                raise RuntimeError("render failed")

        session.transcript.subscribe(broken_renderer)
        session.connect()
        await _wait_for(lambda: session.status == ConnectionStatus.CONNECTED)

        session.send("Jane")
        await _wait_for(lambda: len(session.transcript.of_kind("contact")) == 1)
        session.send("Ann")
        await _wait_for(lambda: len(session.transcript.of_kind("contact")) == 2)
        assert session.status == ConnectionStatus.CONNECTED

        handle = session.handle
        session.disconnect()
        await handle.wait_closed()


@pytest.mark.asyncio
async def test_reconnect_immediately_after_disconnect():
    async with websockets.serve(_agent, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = ChatSession(
            transport_factory=open_websocket,
            endpoint_for=lambda client_id: f"ws://127.0.0.1:{port}/ws/{client_id}",
        )
        first_id = session.connect()
        await _wait_for(lambda: session.status == ConnectionStatus.CONNECTED)
        first = session.handle

        session.disconnect()
        assert session.status == ConnectionStatus.DISCONNECTED
        second_id = session.connect()
        await first.wait_closed()
        await _wait_for(lambda: session.status == ConnectionStatus.CONNECTED)

        assert first_id != second_id
        assert session.handle is not first
        notices = [e.text for e in session.transcript.of_kind("system")]
        assert notices == [
            f"Connected as client: {first_id}",
            "Disconnected from server",
            f"Connected as client: {second_id}",
        ]

        handle = session.handle
        session.disconnect()
        await handle.wait_closed()


@pytest.mark.asyncio
async def test_reader_logs_carry_client_id(caplog):
    caplog.set_level(logging.INFO, logger="src.transport.ws_client")
    async with websockets.serve(_agent, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = ChatSession(
            transport_factory=open_websocket,
            endpoint_for=lambda client_id: f"ws://127.0.0.1:{port}/ws/{client_id}",
        )
        client_id = session.connect()
        await _wait_for(lambda: session.status == ConnectionStatus.CONNECTED)
        handle = session.handle
        session.disconnect()
        await handle.wait_closed()

    opened = [r for r in caplog.records if r.getMessage().startswith("WebSocket open")]
    assert opened
    assert opened[0].client_id == client_id
