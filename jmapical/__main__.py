"""Entry point for `python -m jmapical` command."""

import sys

from jmapical.cli import main

if __name__ == "__main__":
    sys.exit(main())
