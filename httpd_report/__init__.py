"""httpd-hit-report — per-client summaries of Apache access logs."""

__version__ = "0.1.0"
