#!/usr/bin/env python3
"""
Command-line interface for Gardener - static site generator.
"""

import sys
import argparse
import time
from . import __version__
from .core import Gardener, setup_logging


def main() -> None:
    """Main CLI entry point: build the site in the current directory."""
    parser = argparse.ArgumentParser(
        description='Gardener - build a blog and digital garden into ./public')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.parse_args()

    logger = setup_logging(log_dir='logs')

    # Record start time
    overall_start_time = time.time()

    try:
        generator = Gardener()

        # Build the site
        report = generator.build()

        # Show build statistics
        total_time = time.time() - overall_start_time
        logger.info(f"Site build completed in {total_time:.6f} seconds.")
        if report.skipped:
            logger.warning(f"{len(report.skipped)} file(s) were skipped")
        logger.info("Build complete! Output in ./public")

    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
