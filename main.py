"""
Terminal chat client entry point.

Connects to the agent's WebSocket endpoint and prints the transcript as
entries arrive. Supports live mode against a running agent server and the
offline console demo for development.

Usage:
    Live chat:    python main.py
    Console mode: python main.py console
"""

import asyncio
import logging
import sys

from src.config import settings
from src.conversation.chat_session import ChatSession
from src.presentation.formatting import render_entry, status_label
from src.schemas.chat_schema import ConnectionStatus
from src.transport.ws_client import open_websocket

logger = logging.getLogger(__name__)

HELP = "Commands: /connect /disconnect /status /quit. Anything else is sent to the agent."


async def _read_line(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def _run_live_mode() -> None:
    """Interactive chat over a real WebSocket connection."""
    session = ChatSession(transport_factory=open_websocket)
    session.transcript.subscribe(lambda entry: print(render_entry(entry)))
    print(HELP)
    session.connect()

    while True:
        try:
            line = await _read_line("> ")
        except EOFError:
            break
        command = line.strip().lower()
        if command in ("/quit", "/exit"):
            break
        if command == "/connect":
            if session.status == ConnectionStatus.CONNECTED:
                print(f"Already connected as {session.client_id}")
            else:
                session.connect()
            continue
        if command == "/disconnect":
            session.disconnect()
            continue
        if command == "/status":
            print(f"{status_label(session.status)} ({session.client_id or 'no client id'})")
            continue
        if len(line) > settings.client.max_input_length:
            print(f"Message too long ({len(line)} chars)")
            continue
        if not session.send(line) and session.status != ConnectionStatus.CONNECTED:
            print("Please connect to start chatting")

    handle = session.handle
    session.disconnect()
    if handle is not None:
        await handle.wait_closed()
    logger.info("Client exited")


def _run_console_mode() -> None:
    """Start the offline console demo (no agent server required)."""
    from console_demo import ConsoleSession, _INTERACTIVE_REPLIES

    session = ConsoleSession(replies=_INTERACTIVE_REPLIES)
    session.banner("Console Demo")
    session.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        asyncio.run(_run_live_mode())
