"""Group connection records by client source and tally the tracked status codes."""

import logging
from typing import Iterable

from httpd_report.models import ClientGroup, ConnectionRecord, ParseFailure
from httpd_report.parser import parse_line

logger = logging.getLogger(__name__)


def add_all(
    records: Iterable[ConnectionRecord],
    groups: dict[str, ClientGroup] | None = None,
) -> dict[str, ClientGroup]:
    """Add records to ``groups`` (a new mapping when None), keyed by client source.

    First-seen order of sources is preserved by the dict.
    """
    if groups is None:
        groups = {}
    for record in records:
        group = groups.get(record.client_source)
        if group is None:
            group = groups[record.client_source] = ClientGroup(record.client_source)
        group.add(record)
    return groups


def _copy_group(group: ClientGroup) -> ClientGroup:
    return ClientGroup(group.source, list(group.records), dict(group.counts))


def merge(a: dict[str, ClientGroup], b: dict[str, ClientGroup]) -> dict[str, ClientGroup]:
    """Combine two partial mappings without mutating either.

    Counters are summed; for a shared source, b's records follow a's. Keys keep
    a's order, then b's new sources in b's order.
    """
    merged = {source: _copy_group(group) for source, group in a.items()}
    _merge_into(merged, b)
    return merged


def _merge_into(target: dict[str, ClientGroup], groups: dict[str, ClientGroup]):
    """Fold ``groups`` into ``target`` in place. ``groups`` itself is left untouched."""
    for source, group in groups.items():
        existing = target.get(source)
        if existing is None:
            target[source] = _copy_group(group)
            continue
        existing.records.extend(group.records)
        for code, count in group.counts.items():
            existing.counts[code] = existing.counts.get(code, 0) + count


class LogAggregator:
    """Accumulates parsed lines for one or more sources."""

    def __init__(self):
        self.groups: dict[str, ClientGroup] = {}
        self.parsed = 0
        self.skipped = 0

    def add(self, record: ConnectionRecord):
        add_all((record,), self.groups)
        self.parsed += 1

    def add_all(self, records: Iterable[ConnectionRecord]):
        for record in records:
            self.add(record)

    def consume(self, lines: Iterable[str], source: str = ""):
        """Parse raw lines, adding records and counting failures. Blank lines are ignored."""
        for line_num, line in enumerate(lines, 1):
            if not line.strip():
                continue
            result = parse_line(line)
            if isinstance(result, ParseFailure):
                self.skipped += 1
                logger.debug("Skipping %s:%d (%s)", source or "<input>", line_num, result)
                continue
            self.add(result)

    def absorb(self, other: "LogAggregator"):
        """Append another aggregator's groups and counters after this one's."""
        _merge_into(self.groups, other.groups)
        self.parsed += other.parsed
        self.skipped += other.skipped

    def __len__(self) -> int:
        return len(self.groups)


def merge_aggregators(a: LogAggregator, b: LogAggregator) -> LogAggregator:
    """Merge two aggregators, summing their parsed/skipped counters."""
    combined = LogAggregator()
    combined.groups = merge(a.groups, b.groups)
    combined.parsed = a.parsed + b.parsed
    combined.skipped = a.skipped + b.skipped
    return combined
