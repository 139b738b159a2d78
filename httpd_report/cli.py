"""httpd-report — summarise Apache access logs into per-client markdown tables."""

import logging
import sys
from argparse import ArgumentParser

from httpd_report import __version__
from httpd_report.config import load_config, load_yaml_config
from httpd_report.errors import ConfigError
from httpd_report.report import build_report, write_output

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="httpd-report",
        description="Parse Apache httpd access logs and generate a markdown report.",
    )
    parser.add_argument(
        "input_files",
        nargs="*",
        metavar="FILE",
        help="Additional log files to read",
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-s", "--stdin",
        dest="read_stdin",
        action="store_true",
        default=None,
        help="Read log lines from stdin instead of files",
    )
    parser.add_argument(
        "-g", "--gzip",
        dest="read_gzip",
        action="store_true",
        default=None,
        help="Decompress gzipped log files instead of skipping them",
    )
    parser.add_argument(
        "-F", "--follow",
        dest="follow_symlinks",
        action="store_true",
        default=None,
        help="Follow symlinks when searching the log directory",
    )
    parser.add_argument(
        "-r", "-R", "--recurse",
        dest="recurse",
        action="store_true",
        default=None,
        help="Search subdirectories of the log directory",
    )
    parser.add_argument(
        "-a", "--access",
        dest="access_glob",
        metavar="GLOB",
        help="Glob used to find access logs (default: *.access.log*)",
    )
    parser.add_argument(
        "-l", "--log-dir",
        dest="log_dir",
        metavar="DIR",
        help="Directory to search for access logs (default: /var/log/apache2)",
    )
    parser.add_argument(
        "-o", "--output",
        dest="output_file",
        metavar="FILE",
        help="Write the report to FILE instead of stdout",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="YAML config file",
    )
    parser.add_argument(
        "--max-width",
        type=int,
        help="Maximum width of the Source column (default: 80)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of sources parsed in parallel (default: 1)",
    )
    parser.add_argument(
        "--uniform-width",
        action="store_true",
        default=None,
        help="Use the same Source column width for every table",
    )
    parser.add_argument(
        "--connections",
        dest="show_connections",
        action="store_true",
        default=None,
        help="List every connection below each client's table",
    )
    parser.add_argument(
        "--log-level",
        help="Diagnostic log level on stderr (default: WARNING)",
    )
    return parser


def run(args) -> int:
    """Resolve configuration, build the report, and write it out."""
    try:
        config = load_config(args, load_yaml_config(args.config))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logging.getLogger().setLevel(config.log_level)

    result = build_report(config)
    write_output(result.render(config), config.output_file)

    logger.info(
        "Done: %d record(s) from %d source(s), %d unreadable",
        result.parsed, result.sources_read, result.sources_failed,
    )
    return 0


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [httpd-report] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except KeyboardInterrupt:
        return 0
    except BrokenPipeError:
        return 0
    except OSError as e:
        logger.error("%s", e)
        return 1
