#!/usr/bin/env python3
# tools/render_badge.py

"""
Render a badge locally from a photo and a name.

Uses the same composer and configuration as any host embedding the renderer,
so the output matches what users receive.

Examples:
  Render with the configured background:
    python tools/render_badge.py photo.png --name "Night Owls"

  Transparent background plus a JPEG preview:
    python tools/render_badge.py photo.png --name "Night Owls" \\
        --background transparent --output owls.png --preview owls.jpg

  Tune geometry with the guide circles drawn:
    python tools/render_badge.py photo.png --name "EGG TEST" --debug-guide
"""

import argparse
import dataclasses
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv  # noqa: E402

from config.config_loader import ConfigLoader  # noqa: E402
from helpers.badge_composer import (  # noqa: E402
    BACKGROUND_CHOICES,
    BadgeSettings,
    compose_badge,
)
from utils.errors import BotError  # noqa: E402
from utils.logging import get_logger, setup_logging, shutdown_logging  # noqa: E402

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compose a circular badge with curved name text.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("image", type=Path, help="Photo to place in the lens")
    parser.add_argument("--name", default="", help="Name curved along the bottom")
    parser.add_argument(
        "--background",
        choices=BACKGROUND_CHOICES,
        default="solid",
        help="Background type (default: solid)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("debug-final.png"),
        help="Where to write the PNG (default: debug-final.png)",
    )
    parser.add_argument("--preview", type=Path, help="Also write a JPEG preview here")
    parser.add_argument("--config", help="Config YAML (overrides CONFIG_PATH)")
    parser.add_argument(
        "--debug-guide",
        action="store_true",
        help="Draw the lens and clip circles for geometry tuning",
    )
    parser.add_argument(
        "--log-file",
        default="logs/renderer.log",
        help="Log file path (default: logs/renderer.log)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point; returns a process exit code."""
    args = build_parser().parse_args(argv)

    load_dotenv()
    config = ConfigLoader.load_config(args.config)
    setup_logging(args.log_file)

    try:
        settings = BadgeSettings.from_config(config)
        if args.debug_guide:
            settings = dataclasses.replace(settings, debug_guide=True)

        try:
            base_bytes = args.image.read_bytes()
        except OSError as e:
            logger.error("Could not read %s: %s", args.image, e)
            return 1

        result = compose_badge(base_bytes, args.name, args.background, settings)

        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(result.final_png)
        logger.info("Saved %s", args.output, extra={"output_path": str(args.output)})

        if args.preview:
            args.preview.parent.mkdir(parents=True, exist_ok=True)
            args.preview.write_bytes(result.preview_jpg)
            logger.info("Saved preview %s", args.preview, extra={"output_path": str(args.preview)})

        return 0
    except BotError as e:
        logger.error("Failed to generate badge: %s", e)
        return 1
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
