"""
Executable module for bumpwise.

``python -m bumpwise`` is equivalent to the ``bumpwise`` script.
"""

from __future__ import annotations

import sys


def main() -> int:
    from bumpwise.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
