"""Tolerant parser for one line of comma-separated model output

Language models asked for CSV return something close to RFC 4180 but not
reliably so: the trailing notes column often carries unescaped commas or
stray quotes. The parser honours quoting for the leading structured columns
and takes everything after them verbatim as the final column.
"""

from typing import Optional

STRUCTURED_FIELDS = 4  # rank, channel name, category, score


def _strip_quotes(field: str, quote: str, unescape: bool = False) -> str:
    field = field.strip()
    if len(field) >= 2 and field.startswith(quote) and field.endswith(quote):
        field = field[1:-1].strip()
        if unescape:
            field = field.replace(quote * 2, quote)
    return field


def parse_record_line(
    line: str,
    delimiter: str = ",",
    quote: str = '"',
    structured_fields: int = STRUCTURED_FIELDS,
) -> Optional[list[str]]:
    """
    Split a single line into fields

    Args:
        line: One line of text, no embedded newlines
        delimiter: Field separator
        quote: Quote character; doubled inside a quoted field means a literal quote
        structured_fields: Number of leading fields split with quoting rules;
            the rest of the line becomes one free-text field

    Returns:
        List of fields, or None when the line does not hold at least
        ``structured_fields`` fields
    """
    if not line or not line.strip():
        return None

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]

        if char == quote:
            if in_quotes and i + 1 < len(line) and line[i + 1] == quote:
                current.append(quote)
                i += 2
                continue
            in_quotes = not in_quotes
            i += 1
            continue

        if char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []

            if len(fields) == structured_fields:
                # Notes column: keep delimiters and quotes as written
                fields.append(_strip_quotes(line[i + 1:], quote, unescape=True))
                break

            i += 1
            continue

        current.append(char)
        i += 1
    else:
        fields.append("".join(current).strip())

    if len(fields) < structured_fields:
        return None

    return fields
