"""httpd-report entry point."""

import sys

from httpd_report.cli import main

if __name__ == "__main__":
    sys.exit(main())
