"""Allow ``python -m fastconnect`` to run the saved-state command line."""

from __future__ import annotations

import sys


def main() -> None:
    from fastconnect import run
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
