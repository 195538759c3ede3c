"""Entrypoint: run prompts against one or more AI models."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from prompt_playground.cli import main


if __name__ == "__main__":
    sys.exit(main())
