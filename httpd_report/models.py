"""Connection records, parse failures, and per-client groups."""

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus

# Report column order
TRACKED_STATUS_CODES = (
    HTTPStatus.OK,
    HTTPStatus.NO_CONTENT,
    HTTPStatus.MOVED_PERMANENTLY,
    HTTPStatus.BAD_REQUEST,
    HTTPStatus.UNAUTHORIZED,
    HTTPStatus.FORBIDDEN,
    HTTPStatus.NOT_FOUND,
    HTTPStatus.INTERNAL_SERVER_ERROR,
    HTTPStatus.SERVICE_UNAVAILABLE,
)


class ParseState(Enum):
    """Extraction stages of a common-log-format line, in order."""

    SOURCE = "source"
    CLIENT_ID = "client_id"
    USER_ID = "user_id"
    TIMESTAMP = "timestamp"
    REQUEST_LINE = "request_line"
    STATUS = "status"
    SIZE = "size"
    DONE = "done"


@dataclass(frozen=True)
class ConnectionRecord:
    client_source: str  # IP address or hostname
    client_id: str  # identd; unreliable, usually "-"
    user_id: str  # only meaningful for password-protected resources
    timestamp: str  # bracket contents, verbatim
    method: str
    request_uri: str
    http_version: str
    status_code: int
    response_size: int  # bytes without headers; "-" maps to 0

    def to_markdown_row(self) -> str:
        cells = (
            self.client_source,
            self.client_id,
            self.user_id,
            self.timestamp,
            self.method,
            self.request_uri,
            self.http_version,
            str(self.status_code),
            str(self.response_size),
        )
        return "|" + "|".join(cells) + "|"


@dataclass(frozen=True)
class ParseFailure:
    raw: str
    state: ParseState
    reason: str

    def __str__(self) -> str:
        return f"{self.state.value}: {self.reason}"


def _empty_counts() -> dict[int, int]:
    return {int(code): 0 for code in TRACKED_STATUS_CODES}


@dataclass
class ClientGroup:
    """All records seen for one client source, plus tallies of the tracked codes."""

    source: str
    records: list[ConnectionRecord] = field(default_factory=list)
    counts: dict[int, int] = field(default_factory=_empty_counts)

    def add(self, record: ConnectionRecord) -> None:
        self.records.append(record)
        if record.status_code in self.counts:
            self.counts[record.status_code] += 1

    @property
    def total(self) -> int:
        return len(self.records)
