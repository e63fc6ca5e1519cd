"""Decode similarity tables embedded in free-form model responses"""

import logging
import re

from .models import ParsedRecord
from .record_parser import parse_record_line

logger = logging.getLogger(__name__)

MAX_RECORDS = 10
HEADER_TOKENS = ("rank", "channel name", "similarity score")

# A truncated response may leave the fence unclosed
_FENCE_PATTERN = re.compile(r"```[^\n`]*\n(.*?)(?:```|\Z)", re.DOTALL)
_FENCE_MARKER = re.compile(r"^```[\w-]*$")


def extract_fenced_block(text: str) -> str:
    """Return the body of the first ``` fenced block (closed or not), or the whole text"""
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1)
    return text


def _parse_rank(value: str, fallback: int) -> int:
    match = re.match(r"\s*[#(]?(\d+)", value)
    return int(match.group(1)) if match else fallback


def _parse_score(value: str) -> float:
    match = re.match(r"\s*(-?(?:\d+(?:\.\d*)?|\.\d+))", value)
    return float(match.group(1)) if match else 0.0


def decode_similarity_table(text: str, max_records: int = MAX_RECORDS) -> list[ParsedRecord]:
    """
    Extract ranked channel rows from a model response

    Blank lines are ignored, a leading header row is skipped and at most
    ``max_records`` lines after it are examined. Lines that do not split
    into rank, name, category and score are logged and skipped.

    Args:
        text: Raw response text (may include prose and a ```csv fence)
        max_records: Number of data lines to examine

    Returns:
        Parsed records in response order
    """
    if not text or not text.strip():
        return []

    lines = [
        line.strip()
        for line in extract_fenced_block(text).split("\n")
        if line.strip() and not _FENCE_MARKER.match(line.strip())
    ]
    if not lines:
        return []

    start = 1 if any(token in lines[0].lower() for token in HEADER_TOKENS) else 0

    records = []
    for position, line in enumerate(lines[start:start + max_records], 1):
        fields = parse_record_line(line)
        if not fields:
            logger.warning(f"Skipping unparseable line {position}: {line[:120]}")
            continue

        records.append(
            ParsedRecord(
                rank=_parse_rank(fields[0], position),
                name=fields[1],
                category=fields[2],
                score=_parse_score(fields[3]),
                notes=fields[4] if len(fields) > 4 else "",
            )
        )

    logger.info(f"Decoded {len(records)} records from {len(lines) - start} data lines")
    return records
