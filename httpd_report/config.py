"""Configuration — frozen dataclass built from YAML file, env vars, and CLI args.

Precedence (highest first): CLI args, HTTPD_REPORT_* environment variables,
YAML config file, dataclass defaults.
"""

import logging
import os
from dataclasses import dataclass, fields

import yaml

from httpd_report.errors import ConfigError

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_files(value) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _optional_str(value) -> str | None:
    return str(value) if value else None


@dataclass(frozen=True)
class Config:
    log_dir: str = "/var/log/apache2"
    access_glob: str = "*.access.log*"
    recurse: bool = False
    follow_symlinks: bool = False
    read_gzip: bool = False
    read_stdin: bool = False
    input_files: tuple[str, ...] = ()
    output_file: str | None = None
    max_width: int = 80
    line_marker: str = "HTTP/1.1"
    workers: int = 1
    uniform_width: bool = False
    show_connections: bool = False
    log_level: str = "WARNING"


# field name -> (converter, environment variable or None)
_SETTINGS = {
    "log_dir": (str, "HTTPD_REPORT_LOG_DIR"),
    "access_glob": (str, "HTTPD_REPORT_ACCESS_GLOB"),
    "recurse": (_parse_bool, "HTTPD_REPORT_RECURSE"),
    "follow_symlinks": (_parse_bool, "HTTPD_REPORT_FOLLOW_SYMLINKS"),
    "read_gzip": (_parse_bool, "HTTPD_REPORT_READ_GZIP"),
    "read_stdin": (_parse_bool, "HTTPD_REPORT_READ_STDIN"),
    "input_files": (_parse_files, None),
    "output_file": (_optional_str, "HTTPD_REPORT_OUTPUT"),
    "max_width": (int, "HTTPD_REPORT_MAX_WIDTH"),
    "line_marker": (str, "HTTPD_REPORT_LINE_MARKER"),
    "workers": (int, "HTTPD_REPORT_WORKERS"),
    "uniform_width": (_parse_bool, "HTTPD_REPORT_UNIFORM_WIDTH"),
    "show_connections": (_parse_bool, "HTTPD_REPORT_SHOW_CONNECTIONS"),
    "log_level": (lambda v: str(v).upper(), "HTTPD_REPORT_LOG_LEVEL"),
}


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or file missing."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _convert(name: str, value, origin: str):
    converter = _SETTINGS[name][0]
    try:
        return converter(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {name} from {origin}: {value!r}") from e


def _cli_value(cli_args, name: str):
    value = getattr(cli_args, name, None)
    if value in (None, [], ()):
        return None
    return value


def load_config(cli_args=None, yaml_data: dict | None = None, environ=None) -> Config:
    """Build Config by layering YAML data, env vars, then CLI args over the defaults."""
    env = os.environ if environ is None else environ
    yaml_data = yaml_data or {}

    known = {f.name for f in fields(Config)}
    for key in yaml_data:
        if key not in known:
            logger.warning("Ignoring unknown config key %r", key)

    values = {}
    for name, (_, env_name) in _SETTINGS.items():
        if name in yaml_data:
            values[name] = _convert(name, yaml_data[name], "config file")
        if env_name and env.get(env_name) is not None:
            values[name] = _convert(name, env[env_name], env_name)
        cli_value = _cli_value(cli_args, name)
        if cli_value is not None:
            values[name] = _convert(name, cli_value, "command line")

    config = Config(**values)
    validate_config(config)
    return config


def validate_config(config: Config):
    if config.max_width < 1:
        raise ConfigError(f"max_width must be at least 1, got {config.max_width}")
    if config.workers < 1:
        raise ConfigError(f"workers must be at least 1, got {config.workers}")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(
            f"log_level must be one of {', '.join(LOG_LEVELS)}, got {config.log_level!r}"
        )
