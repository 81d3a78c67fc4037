"""
Contact extraction from semi-structured agent replies.

Agents embed people they found as XML-like markup inside ordinary text:

    Here is who I found:
    <contact>
      <fullName>Jane Doe</fullName>
      <jobTitle>CTO</jobTitle>
      <companyName>Acme</companyName>
      <linkedInURL>https://linkedin.com/in/janedoe</linkedInURL>
    </contact>

The markup is never validated as XML. Each field is located by its own
shortest-span tag match inside the block, so stray text, missing fields
and unknown tags are tolerated. Extraction never raises.

Spans are found by searching for an opening tag and then the first
closing tag after it. Once no closing tag follows an opener, no later
opener can match either, so scanning stops there and the cost stays
linear in the text length. Inbound text is not truncated.
"""

import logging
import re
from typing import Any, Iterator, Optional

from src.schemas.chat_schema import ContactRecord

logger = logging.getLogger(__name__)


def _tag_pair(tag: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    return (
        re.compile(rf"<{re.escape(tag)}>", re.IGNORECASE),
        re.compile(rf"</{re.escape(tag)}>", re.IGNORECASE),
    )


_BLOCK_TAGS = _tag_pair("contact")

# Tag spellings per field, in priority order. Matching is case-insensitive,
# so "linkedInURL" also covers "linkedinurl" and "LINKEDINURL".
FIELD_TAGS: dict[str, tuple[str, ...]] = {
    "full_name": ("fullName", "full_name"),
    "company_name": ("companyName", "company_name"),
    "job_title": ("jobTitle", "job_title"),
    "linkedin_url": ("linkedInURL", "linkedin_url"),
}

_FIELD_TAGS: dict[str, list[tuple[re.Pattern[str], re.Pattern[str]]]] = {
    field_name: [_tag_pair(tag) for tag in tags]
    for field_name, tags in FIELD_TAGS.items()
}


def _spans(
    text: str, opener: re.Pattern[str], closer: re.Pattern[str]
) -> Iterator[tuple[int, int, int, int]]:
    """Yield (start, inner_start, inner_end, end) for each non-overlapping span."""
    pos = 0
    while True:
        open_match = opener.search(text, pos)
        if open_match is None:
            return
        close_match = closer.search(text, open_match.end())
        if close_match is None:
            return
        yield open_match.start(), open_match.end(), close_match.start(), close_match.end()
        pos = close_match.end()


def find_contact_blocks(text: Any) -> list[str]:
    """Return every <contact>...</contact> span in source order."""
    if not isinstance(text, str):
        return []
    return [text[start:end] for start, _, _, end in _spans(text, *_BLOCK_TAGS)]


def _extract_field(block: str, tag_pairs: list[tuple[re.Pattern[str], re.Pattern[str]]]) -> str:
    for opener, closer in tag_pairs:
        span: Optional[tuple[int, int, int, int]] = next(_spans(block, opener, closer), None)
        if span is not None:
            return block[span[1]:span[2]].strip()
    return ""


def parse_contact_block(block: str) -> ContactRecord:
    """Build a ContactRecord from one block. Absent fields become ''."""
    return ContactRecord(**{
        field_name: _extract_field(block, tag_pairs)
        for field_name, tag_pairs in _FIELD_TAGS.items()
    })


def extract_contacts(text: Any) -> list[ContactRecord]:
    """
    Extract all non-empty contact records from text.

    Args:
        text: Decoded message text. Anything that is not a str yields [].

    Returns:
        Records in the order their blocks appear. Blocks whose four
        fields are all empty are dropped.
    """
    records = []
    for block in find_contact_blocks(text):
        record = parse_contact_block(block)
        if record.is_empty():
            logger.debug("Dropping empty contact block (%d chars)", len(block))
            continue
        records.append(record)
    return records
