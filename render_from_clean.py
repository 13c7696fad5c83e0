"""Render the coverage charts from the clean table written by ``main.py``."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from pca_coverage.application import run_charts_from_clean
from pca_coverage.config import PipelineConfig
from pca_coverage.domain.errors import PipelineError


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    config = PipelineConfig.for_project(Path(__file__).resolve().parent)
    try:
        run_charts_from_clean(config)
    except PipelineError as exc:
        print(f"Pipeline failed: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
