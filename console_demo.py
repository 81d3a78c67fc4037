"""
Offline console demo — runs a chat session without an agent server.

Agent replies come from a scripted in-memory transport, so the real
session, frame decoder, contact extractor and transcript are exercised
with no network calls. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario contacts
    python console_demo.py --scenario mixed
"""

import argparse
import json

from src.config import settings
from src.conversation.chat_session import ChatSession
from src.presentation.formatting import (
    contact_card_lines,
    format_time,
    status_label,
)
from src.schemas.chat_schema import ConnectionStatus, EntryKind
from src.transport.memory import ScriptedTransport

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
MAGENTA = "\033[95m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

_CONTACT_REPLY = (
    "Here is who I found:\n"
    "<contact><fullName>Jane Doe</fullName><jobTitle>CTO</jobTitle>"
    "<companyName>Acme Robotics</companyName>"
    "<linkedInURL>https://www.linkedin.com/in/janedoe</linkedInURL></contact>\n"
    "<contact><full_name>Raj Patel</full_name><job_title>VP Engineering</job_title>"
    "<company_name>Acme Robotics</company_name></contact>"
)

# (user input, agent reply frame) pairs for --scenario
SCENARIOS: dict[str, list[tuple[str, str]]] = {
    "contacts": [
        ("Who runs engineering at Acme Robotics?", _CONTACT_REPLY),
        ("Thanks!", json.dumps({"type": "bot", "message": "Happy to help."})),
    ],
    "mixed": [
        ("Hello", "Hello! What can I look up for you?"),
        ("Any contacts at Globex?", json.dumps({"content": "<contact></contact>Nobody public yet."})),
        ("Try again", json.dumps("Still searching, please hold on.")),
        (
            "And the CFO?",
            json.dumps({
                "type": "bot",
                "message": "<contact><fullName>Hank Scorpio</fullName>"
                           "<jobTitle>CFO</jobTitle></contact>",
            }),
        ),
    ],
}

_INTERACTIVE_REPLIES = [
    "Hi! I'm a scripted agent. Ask me about anyone.",
    _CONTACT_REPLY,
    json.dumps({"type": "bot", "message": "That's everything I have for now."}),
]


class ConsoleSession:
    """Drives a ChatSession over a scripted transport and prints the transcript."""

    def __init__(self, replies: list[str]) -> None:
        self.transport = ScriptedTransport(auto_open=True, echo=True, replies=replies)
        self.chat = ChatSession(transport_factory=self.transport)
        self.chat.transcript.subscribe(self.render)

    def render(self, entry) -> None:
        stamp = f"{DIM}{format_time(entry.at)}{RESET}"
        kind = EntryKind(entry.kind)
        if kind == EntryKind.USER:
            print(f"{stamp} {BLUE}{BOLD}[You]{RESET} {entry.text}")
        elif kind == EntryKind.BOT:
            print(f"{stamp} {GREEN}{BOLD}[Agent]{RESET} {GREEN}{entry.text}{RESET}")
        elif kind == EntryKind.CONTACT:
            print(f"{stamp} {MAGENTA}{BOLD}[Contact]{RESET}")
            for line in contact_card_lines(entry.record):
                print(f"    {MAGENTA}|{RESET} {line}")
        else:
            print(f"{stamp} {YELLOW}[System] {entry.text}{RESET}")

    def status_line(self) -> None:
        colour = GREEN if self.chat.status == ConnectionStatus.CONNECTED else RED
        print(f"{DIM}  >> Status: {colour}{status_label(self.chat.status)}{RESET}")

    def banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  AGENT CHAT - {title}{RESET}")
        print(f"{BOLD}  Endpoint: {settings.server.base_url}/<client id>{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def summary(self) -> None:
        entries = self.chat.transcript.entries()
        counts = {kind.value: sum(1 for e in entries if e.kind == kind) for kind in EntryKind}
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{DIM}  Status trace: {' -> '.join(self.chat.state_machine.get_state_trace())}{RESET}")
        print(f"{DIM}  Entries: {counts}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_scenario(self, steps: list[tuple[str, str]]) -> None:
        """Auto-play pre-scripted (input, reply) pairs."""
        self.chat.connect()
        self.status_line()
        for text, _reply in steps:
            self.chat.send(text)
        self.chat.disconnect()
        self.status_line()
        self.summary()

    def run(self) -> None:
        print(f"{DIM}  Commands: /connect /disconnect /quit{RESET}")
        while True:
            user_input = input(f"\n{BLUE}> {RESET}")
            command = user_input.strip().lower()
            if command in ("/quit", "/exit", "/q"):
                self.chat.disconnect()
                print(f"\n{DIM}Session ended.{RESET}")
                break
            if command == "/connect":
                if self.chat.status == ConnectionStatus.CONNECTED:
                    print(f"{DIM}  Already connected as {self.chat.client_id}{RESET}")
                else:
                    self.chat.connect()
                self.status_line()
                continue
            if command == "/disconnect":
                self.chat.disconnect()
                self.status_line()
                continue
            if len(user_input) > settings.client.max_input_length:
                print(f"{RED}  Message too long ({len(user_input)} chars){RESET}")
                continue
            if not self.chat.send(user_input) and self.chat.status != ConnectionStatus.CONNECTED:
                print(f"{DIM}  Please connect to start chatting (/connect){RESET}")
        self.summary()


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    if args.scenario:
        steps = SCENARIOS[args.scenario]
        session = ConsoleSession(replies=[reply for _text, reply in steps])
        session.banner(f"Scenario: {args.scenario}")
        session.run_scenario(steps)
    else:
        session = ConsoleSession(replies=_INTERACTIVE_REPLIES)
        session.banner("Console Demo")
        session.run()


if __name__ == "__main__":
    main()
