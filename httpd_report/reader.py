"""Input sources — log file discovery, gzip detection, and line reading."""

import fnmatch
import gzip
import io
import logging
import os
import sys
from dataclasses import dataclass
from typing import Iterable, Iterator, TextIO

from httpd_report.config import Config
from httpd_report.errors import SourceReadFailure

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
STDIN_NAME = "stdin"


@dataclass(frozen=True)
class LogSource:
    name: str
    path: str | None = None  # None means stdin


def is_gzipped(path: str) -> bool:
    """True if the file starts with the gzip magic bytes. Files under 2 bytes never are."""
    try:
        if os.path.getsize(path) < len(GZIP_MAGIC):
            return False
        with open(path, "rb") as f:
            return f.read(len(GZIP_MAGIC)) == GZIP_MAGIC
    except OSError:
        return False


def find_log_files(
    directory: str,
    pattern: str,
    recurse: bool = False,
    follow_symlinks: bool = False,
) -> list[str]:
    """Return files under ``directory`` whose name matches ``pattern``.

    Traversal uses an explicit stack. Files within a directory are sorted by
    name; subdirectories are visited in name order after their parent.
    Symlinked files are matched like regular files; symlinked directories are
    only entered when ``follow_symlinks`` is set.
    """
    found = []
    visited = set()
    stack = [directory]

    while stack:
        current = stack.pop()
        try:
            real = os.path.realpath(current)
            if real in visited:
                continue
            visited.add(real)
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.error("Cannot read directory %s: %s", current, e)
            continue

        subdirs = []
        for entry in entries:
            try:
                if entry.is_dir():
                    if recurse and (follow_symlinks or not entry.is_symlink()):
                        subdirs.append(entry.path)
                    continue
                if entry.is_file() and fnmatch.fnmatch(entry.name, pattern):
                    found.append(entry.path)
            except OSError as e:
                logger.warning("Skipping %s: %s", entry.path, e)

        # Reversed so the stack pops them in name order
        stack.extend(reversed(subdirs))

    return found


def collect_sources(config: Config) -> list[LogSource]:
    """Ordered, de-duplicated list of sources to read for this run."""
    if config.read_stdin:
        return [LogSource(STDIN_NAME)]

    # Explicit files replace the directory search
    if config.input_files:
        paths = list(config.input_files)
    elif os.path.isdir(config.log_dir):
        paths = find_log_files(
            config.log_dir,
            config.access_glob,
            recurse=config.recurse,
            follow_symlinks=config.follow_symlinks,
        )
    else:
        logger.error("Log directory %s does not exist", config.log_dir)
        paths = []

    sources = []
    seen = set()
    for path in paths:
        key = os.path.realpath(path)
        if key in seen:
            continue
        seen.add(key)
        sources.append(LogSource(path, path))
    return sources


def _read_stream(stream: TextIO, name: str) -> Iterator[str]:
    try:
        yield from stream
    except (OSError, EOFError, UnicodeDecodeError) as e:
        raise SourceReadFailure(name, str(e)) from e


def read_lines(source: LogSource, read_gzip: bool = False, stdin: TextIO | None = None) -> Iterator[str]:
    """Yield raw lines from a source.

    Raises SourceReadFailure when the source can't be opened or read. Gzipped
    files are skipped (nothing yielded) unless ``read_gzip`` is set.
    """
    if source.path is None:
        if stdin is None:
            # Same decoding policy as files: bad bytes become U+FFFD
            stdin = io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8", errors="replace")
        yield from _read_stream(stdin, source.name)
        return

    if is_gzipped(source.path):
        if not read_gzip:
            logger.warning(
                "Gzipped file detected, skipping %s. Use --gzip or pipe it through zcat.",
                source.path,
            )
            return
        opener = gzip.open
    else:
        opener = open

    try:
        f = opener(source.path, "rt", encoding="utf-8", errors="replace")
    except OSError as e:
        raise SourceReadFailure(source.name, str(e)) from e
    with f:
        yield from _read_stream(f, source.name)


def filter_marker(lines: Iterable[str], marker: str) -> Iterator[str]:
    """Keep only lines containing ``marker``. An empty marker keeps everything."""
    if not marker:
        yield from lines
        return
    for line in lines:
        if marker in line:
            yield line
