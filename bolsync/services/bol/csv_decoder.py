"""
CSV decoder for bol.com export downloads

Character-level state machine (unquoted / quoted). Records are keyed by the
trimmed header row; values are trimmed; all-empty rows are dropped.
"""
from typing import Dict, Iterator, List

Record = Dict[str, str]


def iter_rows(text: str) -> Iterator[List[str]]:
    """Yield raw rows, skipping rows whose fields are all empty."""
    row: List[str] = []
    field: List[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch == '"':
            if in_quotes and i + 1 < n and text[i + 1] == '"':
                field.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            row.append("".join(field))
            field = []
        elif ch in "\r\n" and not in_quotes:
            if ch == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
            row.append("".join(field))
            field = []
            if any(value != "" for value in row):
                yield row
            row = []
        else:
            field.append(ch)
        i += 1

    if field or row:
        row.append("".join(field))
        if any(value != "" for value in row):
            yield row


def iter_records(text: str) -> Iterator[Record]:
    """Lazily zip every data row against the header row."""
    rows = iter_rows(text)
    header = next(rows, None)
    if header is None:
        return

    keys = [h.strip() for h in header]
    for row in rows:
        yield {key: (row[i] if i < len(row) else "").strip() for i, key in enumerate(keys)}


def decode_csv(text: str) -> List[Record]:
    """Header-only or empty input yields []."""
    return list(iter_records(text))
