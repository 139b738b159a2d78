"""Common log format parser — positional extraction with bounds-checked delimiter search.

Expected layout (Apache ``%h %l %u %t "%r" %>s %b``):

    <source> <client-id> <user-id> [<timestamp>] "<method> <uri> <version>" <status> <size>

Each stage locates the next delimiter with ``str.find``; a miss at any stage
yields a ParseFailure tagged with that stage instead of a partial record.
Anything after the size field (e.g. the referer and user agent of the
combined format) is ignored.
"""

from httpd_report.models import ConnectionRecord, ParseFailure, ParseState

SIZE_PLACEHOLDER = "-"


def _is_number(text: str) -> bool:
    return text.isascii() and text.isdigit()


def _next_token(line: str, start: int) -> tuple[str, int] | None:
    """Return (token, index of terminating space) for the field starting at ``start``."""
    end = line.find(" ", start)
    if end == -1:
        return None
    return line[start:end], end


def parse_line(line: str) -> ConnectionRecord | ParseFailure:
    """Parse one access-log line into a ConnectionRecord, or describe why it can't be."""
    stripped = line.rstrip("\r\n")

    def fail(state: ParseState, reason: str) -> ParseFailure:
        return ParseFailure(raw=stripped, state=state, reason=reason)

    # Source, client id, user id: space-terminated
    fields = []
    pos = 0
    for state in (ParseState.SOURCE, ParseState.CLIENT_ID, ParseState.USER_ID):
        token = _next_token(stripped, pos)
        if token is None:
            return fail(state, "missing space delimiter")
        value, end = token
        fields.append(value)
        pos = end + 1
    client_source, client_id, user_id = fields

    # Timestamp: [ ... ], contents kept verbatim
    open_bracket = stripped.find("[", pos)
    if open_bracket == -1:
        return fail(ParseState.TIMESTAMP, "missing '['")
    close_bracket = stripped.find("]", open_bracket + 1)
    if close_bracket == -1:
        return fail(ParseState.TIMESTAMP, "missing ']'")
    timestamp = stripped[open_bracket + 1:close_bracket]

    # Request line: " ... "
    open_quote = stripped.find('"', close_bracket + 1)
    if open_quote == -1:
        return fail(ParseState.REQUEST_LINE, "missing opening '\"'")
    close_quote = stripped.find('"', open_quote + 1)
    if close_quote == -1:
        return fail(ParseState.REQUEST_LINE, "missing closing '\"'")
    tokens = stripped[open_quote + 1:close_quote].split()
    if len(tokens) != 3:
        return fail(
            ParseState.REQUEST_LINE,
            f"expected method, uri and version, got {len(tokens)} token(s)",
        )
    method, request_uri, http_version = tokens

    # Status: between the space after the closing quote and the next space
    status_start = stripped.find(" ", close_quote + 1)
    if status_start == -1:
        return fail(ParseState.STATUS, "missing status field")
    token = _next_token(stripped, status_start + 1)
    if token is None:
        return fail(ParseState.SIZE, "missing size field")
    status_text, status_end = token
    if not _is_number(status_text):
        return fail(ParseState.STATUS, f"non-numeric status {status_text!r}")

    # Size: next token; trailing fields (combined format referer/agent) are ignored
    size_text = stripped[status_end + 1:].strip().split(" ", 1)[0]
    if size_text == SIZE_PLACEHOLDER:
        response_size = 0
    elif _is_number(size_text):
        response_size = int(size_text)
    else:
        return fail(ParseState.SIZE, f"non-numeric size {size_text!r}")

    return ConnectionRecord(
        client_source=client_source,
        client_id=client_id,
        user_id=user_id,
        timestamp=timestamp,
        method=method,
        request_uri=request_uri,
        http_version=http_version,
        status_code=int(status_text),
        response_size=response_size,
    )
