"""Tests for the append-only transcript store."""

import threading

import pytest
from pydantic import ValidationError

from src.conversation.transcript import TranscriptStore
from src.schemas.chat_schema import (
    BotEntry,
    ContactEntry,
    ContactRecord,
    EntryKind,
    SystemEntry,
    UserEntry,
)


class TestTranscriptStore:
    def test_starts_empty(self, transcript):
        assert transcript.entries() == ()
        assert len(transcript) == 0

    def test_preserves_order(self, transcript):
        transcript.append(SystemEntry(text="a"))
        transcript.append(UserEntry(text="b"))
        transcript.append(BotEntry(text="c"))
        assert [e.text for e in transcript] == ["a", "b", "c"]

    def test_snapshot_is_not_live(self, transcript):
        snapshot = transcript.entries()
        transcript.append(BotEntry(text="later"))
        assert snapshot == ()

    def test_of_kind(self, transcript):
        transcript.append(BotEntry(text="x"))
        transcript.append(ContactEntry(record=ContactRecord(full_name="Jane")))
        assert len(transcript.of_kind("contact")) == 1

    def test_of_kind_accepts_enum_and_value(self, transcript):
        transcript.append(SystemEntry(text="x"))
        transcript.append(BotEntry(text="y"))
        assert transcript.of_kind(EntryKind.BOT) == transcript.of_kind("bot")
        assert [e.text for e in transcript.of_kind(EntryKind.SYSTEM)] == ["x"]

    def test_of_kind_rejects_unknown_kind(self, transcript):
        with pytest.raises(ValueError):
            transcript.of_kind("assistant")

    def test_listener_notified_in_order(self, transcript):
        seen = []
        transcript.subscribe(lambda entry: seen.append(entry.text))
        transcript.extend([BotEntry(text="1"), BotEntry(text="2")])
        assert seen == ["1", "2"]

    def test_unsubscribe(self, transcript):
        seen = []
        unsubscribe = transcript.subscribe(seen.append)
        unsubscribe()
        transcript.append(BotEntry(text="ignored"))
        assert seen == []

    def test_concurrent_appends_all_recorded(self):
        store = TranscriptStore()

        def worker(n):
            for i in range(100):
                store.append(BotEntry(text=f"{n}-{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(store) == 400


    def test_failing_listener_logged_and_skipped(self, transcript, caplog):
        seen = []

        def broken(entry):
            raise RuntimeError("render failed")

        transcript.subscribe(broken)
        transcript.subscribe(lambda entry: seen.append(entry.text))
        transcript.extend([BotEntry(text="1"), BotEntry(text="2")])
        assert [e.text for e in transcript] == ["1", "2"]
        assert seen == ["1", "2"]
        assert "render failed" in caplog.text


class TestEntriesImmutable:
    def test_entry_cannot_be_mutated(self):
        entry = BotEntry(text="fixed")
        with pytest.raises(ValidationError):
            entry.text = "changed"

    def test_contact_record_cannot_be_mutated(self):
        record = ContactRecord(full_name="Jane")
        with pytest.raises(ValidationError):
            record.full_name = "John"

    def test_contact_entry_requires_record(self):
        with pytest.raises(ValidationError):
            ContactEntry()

    def test_timestamps_are_timezone_aware(self):
        assert UserEntry(text="x").at.tzinfo is not None
