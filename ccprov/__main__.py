"""Entry point for ``python -m ccprov``."""

from __future__ import annotations

import sys

from ccprov.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
