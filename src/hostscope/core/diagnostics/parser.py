"""
Tolerant parser for the CSV text produced by system queries.

WMIC's /format:csv output looks like:

    <blank line>
    Node,DeviceID,Name,Status
    HOST1,"USB\\ROOT_HUB30\\4&2ABBF678&0&0","USB Root Hub (xHCI)",OK

Fields are looked up by header name rather than position, so the parser
does not depend on the order in which a query lists its columns.
"""

import csv
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ParseError(ValueError):
    """A row could not be turned into fields. Always skipped, never escalated."""


def clean_field(value: str) -> str:
    """Strip surrounding whitespace and quote characters from a field."""
    return value.strip().strip('"').strip()


@dataclass(frozen=True)
class TableRow:
    """One parsed data row with header-name access."""
    values: Tuple[str, ...]
    index: Dict[str, int]

    def get(self, column: str, default: str = "") -> str:
        pos = self.index.get(column.lower())
        if pos is None or pos >= len(self.values):
            return default
        return self.values[pos]

    def __getitem__(self, column: str) -> str:
        pos = self.index.get(column.lower())
        if pos is None or pos >= len(self.values):
            raise KeyError(column)
        return self.values[pos]

    def __contains__(self, column: str) -> bool:
        pos = self.index.get(column.lower())
        return pos is not None and pos < len(self.values)

    def as_dict(self) -> Dict[str, str]:
        return {name: self.values[pos] for name, pos in self.index.items() if pos < len(self.values)}


def _split(line: str) -> List[str]:
    try:
        fields = next(csv.reader([line], skipinitialspace=True))
    except (csv.Error, StopIteration) as e:
        raise ParseError(f"unreadable row: {e}") from e
    return [clean_field(f) for f in fields]


def parse_table(
    text: str,
    required_columns: Iterable[str] = (),
    log: Optional[logging.Logger] = None,
) -> List[TableRow]:
    """
    Convert delimited query output into rows.

    Args:
        text: Raw standard output of the query
        required_columns: Columns every kept row must reach; rows too short
            to contain all of them are dropped, not repaired. Rows with more
            fields than the header are dropped too, since an unquoted comma
            shifts every later column.
        log: Optional logger for skipped-row diagnostics

    Returns:
        Parsed rows in input order. The first non-blank line is the header
        and never appears in the result.
    """
    log = log or logger
    lines = [line for line in (text or "").splitlines() if line.strip()]
    if not lines:
        return []

    try:
        header = _split(lines[0])
    except ParseError as e:
        log.debug(f"Discarding table with unreadable header: {e}")
        return []

    index: Dict[str, int] = {}
    for pos, name in enumerate(header):
        if name:
            index.setdefault(name.lower(), pos)

    required = [c.lower() for c in required_columns]
    missing = [c for c in required if c not in index]
    if missing:
        log.warning(f"Query output is missing columns {missing}; header was {header}")
        return []

    min_fields = max((index[c] for c in required), default=-1) + 1

    rows: List[TableRow] = []
    for line_no, line in enumerate(lines[1:], start=2):
        try:
            values = _split(line)
            if len(values) < min_fields:
                raise ParseError(f"expected at least {min_fields} fields, got {len(values)}")
            if len(values) > len(header):
                raise ParseError(f"expected at most {len(header)} fields, got {len(values)}")
        except ParseError as e:
            log.debug(f"Skipping row {line_no}: {e}")
            continue
        rows.append(TableRow(values=tuple(values), index=index))

    return rows
