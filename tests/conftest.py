"""Shared test fixtures and helpers."""

from typing import Optional

import pytest

from src.conversation.chat_session import ChatSession
from src.conversation.state_machine import ConnectionStateMachine
from src.conversation.transcript import TranscriptStore
from src.transport.memory import ScriptedTransport


@pytest.fixture
def state_machine():
    return ConnectionStateMachine()


@pytest.fixture
def transcript():
    return TranscriptStore()


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def session(transport, transcript):
    return ChatSession(
        transport_factory=transport,
        transcript=transcript,
        endpoint_for=lambda client_id: f"ws://localhost:8001/ws/{client_id}",
    )


@pytest.fixture
def connected_session(session, transport):
    """A session whose transport has fired its open event."""
    session.connect()
    transport.last.open()
    return session


def make_contact_block(
    full_name: Optional[str] = None,
    company_name: Optional[str] = None,
    job_title: Optional[str] = None,
    linkedin_url: Optional[str] = None,
) -> str:
    """Helper to build <contact> markup with camelCase tags."""
    parts = []
    if full_name is not None:
        parts.append(f"<fullName>{full_name}</fullName>")
    if company_name is not None:
        parts.append(f"<companyName>{company_name}</companyName>")
    if job_title is not None:
        parts.append(f"<jobTitle>{job_title}</jobTitle>")
    if linkedin_url is not None:
        parts.append(f"<linkedInURL>{linkedin_url}</linkedInURL>")
    return "<contact>" + "".join(parts) + "</contact>"
