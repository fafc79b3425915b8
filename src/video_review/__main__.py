"""Entry point for ``python -m video_review``."""

import sys

from video_review.cli import main

if __name__ == "__main__":
    sys.exit(main())
