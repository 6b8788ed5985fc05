"""Allow ``python -m auto_video_recorder`` to run the command line interface."""

from __future__ import annotations

import sys


def main() -> None:
    from auto_video_recorder import run

    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
