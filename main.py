#!/usr/bin/env python3
"""
travelcms - Image Upload and Matching
=====================================

Entry point for the batch job that uploads the site's static images to the
content store and links them to destinations and packages.

The job:
1. Uploads gallery images (imgi_XX_YY.webp) and creates gallery documents
2. Matches destination images by file name and updates the destinations
3. Matches package images by destination name and updates the packages

Usage:
    python main.py [--image-dir DIR] [--dry-run] [--verbose] [--config FILE]

    SANITY_API_TOKEN=your-token python main.py

Exit status is 0 when every stage ran, whatever the per-image counts, and 1
on a missing token or any fatal error.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from travelcms.core.image_sync import format_report, run_sync
from travelcms.core.sanity_api import SanityAPI
from travelcms.utils.config_manager import load_config
from travelcms.utils.logger import setup_logging, shutdown_logging

TOKEN_HELP = [
    "",
    "To get your token:",
    "1. Go to https://sanity.io/manage",
    "2. Select your project",
    "3. Go to API > Tokens",
    "4. Create a new token with 'Editor' permissions",
    "   The token MUST have 'Editor' permissions to create documents and upload assets",
    "",
    "Then run:",
    "  SANITY_API_TOKEN=your-token python main.py",
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Upload site images to the content store and match them to destinations and packages"
    )
    parser.add_argument(
        "--image-dir",
        help="Directory containing the images (default: ./public or TRAVELCMS_IMAGE_DIR)"
    )
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Match and report without uploading or changing any document"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug output on the console"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON configuration file (default: ~/.travelcms_config.json)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the upload and matching job.

    Returns:
        Process exit code
    """
    args = parse_args(argv)
    setup_logging(console_level=logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        cfg = load_config(args.config)

        if not cfg.has_token:
            logger.error("Error: SANITY_API_TOKEN environment variable is required")
            for line in TOKEN_HELP:
                logger.info(line)
            return 1

        image_dir = Path(args.image_dir or cfg.image_dir).resolve()

        logger.info("Starting image upload and matching process...")
        logger.info(f"Project: {cfg.project_id}")
        logger.info(f"Dataset: {cfg.dataset}")
        logger.info(f"Image directory: {image_dir}")
        if args.dry_run:
            logger.info("Mode: DRY-RUN (no uploads or document changes)")

        with SanityAPI.from_config(cfg) as api:
            stats = run_sync(api, image_dir, dry_run=args.dry_run)

        logger.info("")
        for line in format_report(stats):
            logger.info(line)
        logger.info("Image upload and matching completed!")
        return 0

    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return 1

    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
