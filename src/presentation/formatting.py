"""Plain-text rendering of transcript entries for terminal clients."""

from datetime import datetime

from src.schemas.chat_schema import ConnectionStatus, ContactRecord, EntryKind

PLACEHOLDER = "—"

STATUS_LABELS = {
    ConnectionStatus.CONNECTED: "Connected",
    ConnectionStatus.DISCONNECTED: "Disconnected",
    ConnectionStatus.ERROR: "Error",
}

ENTRY_LABELS = {
    EntryKind.USER: "You",
    EntryKind.BOT: "Agent",
    EntryKind.SYSTEM: "System",
    EntryKind.CONTACT: "Contact",
}


def format_time(timestamp: datetime) -> str:
    """24-hour HH:MM in local time."""
    return timestamp.astimezone().strftime("%H:%M")


def status_label(status: ConnectionStatus) -> str:
    return STATUS_LABELS.get(status, "Error")


def contact_card_lines(record: ContactRecord) -> list[str]:
    """Name, title and company (placeholder when blank), then the link if any."""
    lines = [
        record.full_name or PLACEHOLDER,
        record.job_title or PLACEHOLDER,
        record.company_name or PLACEHOLDER,
    ]
    if record.linkedin_url:
        lines.append(f"LinkedIn: {record.linkedin_url}")
    return lines


def render_entry(entry) -> str:
    """One entry as display text, prefixed with its time and label."""
    kind = EntryKind(entry.kind)
    header = f"{format_time(entry.at)} [{ENTRY_LABELS[kind]}]"
    if kind == EntryKind.CONTACT:
        body = "\n".join(f"  | {line}" for line in contact_card_lines(entry.record))
        return f"{header}\n{body}"
    return f"{header} {entry.text}"
