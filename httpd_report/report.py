"""Report pipeline — read sources, aggregate per source, reduce, render."""

import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TextIO

from httpd_report.aggregator import LogAggregator
from httpd_report.config import Config
from httpd_report.errors import SourceReadFailure
from httpd_report.formatter import render_report
from httpd_report.models import ClientGroup
from httpd_report.reader import LogSource, collect_sources, filter_marker, read_lines

logger = logging.getLogger(__name__)


@dataclass
class ReportResult:
    groups: dict[str, ClientGroup] = field(default_factory=dict)
    parsed: int = 0
    skipped: int = 0
    sources_read: int = 0
    sources_failed: int = 0

    def render(self, config: Config) -> str:
        return render_report(
            self.groups,
            skipped=self.skipped,
            max_width=config.max_width,
            uniform=config.uniform_width,
            connections=config.show_connections,
        )


def aggregate_source(source: LogSource, config: Config, stdin: TextIO | None = None) -> LogAggregator | None:
    """Parse and aggregate a single source. Returns None if the source can't be read."""
    aggregator = LogAggregator()
    lines = filter_marker(read_lines(source, read_gzip=config.read_gzip, stdin=stdin), config.line_marker)
    try:
        aggregator.consume(lines, source=source.name)
    except SourceReadFailure as e:
        logger.error("Failed to read %s: %s", e.source, e.reason)
        return None
    logger.info(
        "%s: %d parsed, %d skipped, %d client(s)",
        source.name, aggregator.parsed, aggregator.skipped, len(aggregator),
    )
    return aggregator


def build_report(config: Config, stdin: TextIO | None = None) -> ReportResult:
    """Aggregate every configured source and combine the partial results in source order."""
    sources = collect_sources(config)
    logger.info("Reading %d source(s) with %d worker(s)", len(sources), config.workers)

    if config.workers > 1 and len(sources) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            partials = list(executor.map(lambda s: aggregate_source(s, config, stdin), sources))
    else:
        partials = [aggregate_source(s, config, stdin) for s in sources]

    succeeded = [p for p in partials if p is not None]
    combined = LogAggregator()
    for partial in succeeded:
        combined.absorb(partial)

    result = ReportResult(
        groups=combined.groups,
        parsed=combined.parsed,
        skipped=combined.skipped,
        sources_read=len(succeeded),
        sources_failed=len(partials) - len(succeeded),
    )
    if result.skipped:
        logger.warning("Skipped %d malformed line(s)", result.skipped)
    return result


def write_output(text: str, output_file: str | None = None):
    """Write the rendered report to ``output_file``, or stdout when None."""
    if not output_file:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info("Report written to %s", output_file)
