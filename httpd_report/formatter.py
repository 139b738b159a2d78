"""Markdown report rendering — one status table per client source."""

from httpd_report.models import TRACKED_STATUS_CODES, ClientGroup

HEADER_SOURCE = "Source"
COUNT_COLUMN_WIDTH = 11
DEFAULT_MAX_WIDTH = 80
TABLE_RULE = "----------"
REPORT_TITLE = "# HTTPD Report"

CONNECTION_HEADERS = (
    "Source", "Client ID", "User ID", "Timestamp", "Method",
    "Request URI", "HTTP Version", "Status", "Size",
)


def spacer_strings(width: int, text: str) -> tuple[str, str]:
    """Return (left, right) padding that centres ``text`` in ``width`` columns."""
    left = max(width - len(text), 0) // 2
    right = max(width - left - len(text), 0)
    return " " * left, " " * right


def centre(text: str, width: int) -> str:
    left, right = spacer_strings(width, text)
    return left + text + right


def source_column_width(source: str, max_width: int = DEFAULT_MAX_WIDTH) -> int:
    """Width of the Source column for a single client source.

    Sources no longer than the header label get the label plus one space each
    side; longer sources widen the column up to ``max_width``. The cap bounds
    the header and divider only: a source beyond it is still written in full
    on its data row, so that row runs wider than the header.
    """
    if len(source) > len(HEADER_SOURCE):
        return max(min(len(source), max_width), len(HEADER_SOURCE))
    return len(HEADER_SOURCE) + 2


def longest_client_source(groups: dict[str, ClientGroup], max_width: int = DEFAULT_MAX_WIDTH) -> str:
    """Longest source (in discovery order) that fits within ``max_width``.

    A source exactly at the cap cannot be beaten and is returned at once; a
    source beyond the cap stops the search. No sources yields ``max_width``
    spaces.
    """
    longest = ""
    for source in groups:
        if len(source) == max_width:
            return source
        if len(source) > max_width:
            break
        if len(source) > len(longest):
            longest = source
    return longest or " " * max_width


def _status_table(group: ClientGroup, width: int) -> str:
    left, right = spacer_strings(width, HEADER_SOURCE)
    header = "|" + left + HEADER_SOURCE + right + "|" + "|".join(
        centre(f"Total {int(code)}", COUNT_COLUMN_WIDTH) for code in TRACKED_STATUS_CODES
    ) + "|"
    divider = "|" + "-" * width + "|" + "|".join(
        "-" * COUNT_COLUMN_WIDTH for _ in TRACKED_STATUS_CODES
    ) + "|"
    row = "|" + group.source.ljust(width) + "|" + "|".join(
        centre(str(group.counts.get(int(code), 0)), COUNT_COLUMN_WIDTH)
        for code in TRACKED_STATUS_CODES
    ) + "|"
    return "\n".join((header, divider, row))


def render_connections(group: ClientGroup) -> str:
    """Detail table listing every record of a group in arrival order."""
    lines = [
        f"### Connections from {group.source} ({group.total})",
        "",
        "|" + "|".join(CONNECTION_HEADERS) + "|",
        "|" + "|".join("-" * len(h) for h in CONNECTION_HEADERS) + "|",
    ]
    lines.extend(record.to_markdown_row() for record in group.records)
    return "\n".join(lines)


def render(
    groups: dict[str, ClientGroup],
    max_width: int = DEFAULT_MAX_WIDTH,
    uniform: bool = False,
    connections: bool = False,
) -> str:
    """Render one table per group, in discovery order, separated by a rule."""
    if not groups:
        return ""

    uniform_width = None
    if uniform:
        uniform_width = source_column_width(longest_client_source(groups, max_width), max_width)

    blocks = []
    for source, group in groups.items():
        width = uniform_width or source_column_width(source, max_width)
        block = _status_table(group, width)
        if connections:
            block += "\n\n" + render_connections(group)
        blocks.append(block)
    return f"\n\n{TABLE_RULE}\n\n".join(blocks) + "\n"


def render_report(
    groups: dict[str, ClientGroup],
    skipped: int = 0,
    max_width: int = DEFAULT_MAX_WIDTH,
    uniform: bool = False,
    connections: bool = False,
) -> str:
    """Full report: title block followed by the per-client tables."""
    lines = [REPORT_TITLE, f"## Total Unique IPs: {len(groups)}"]
    if skipped:
        lines.append(f"## Skipped Lines: {skipped}")
    text = "\n".join(lines) + "\n"
    body = render(groups, max_width=max_width, uniform=uniform, connections=connections)
    if body:
        text += "\n" + body
    return text
