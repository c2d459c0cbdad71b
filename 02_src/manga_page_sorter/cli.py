"""CLI interface for chapter page sorting.

Sorts a directory of page images (or a JSON sort request) using
SortChapterOperation under the hood.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from .core.processor import ChapterProcessor
from .errors import PageSortError
from .preprocessing.images import ImageLoadConfig, PageImageLoader
from .schemas.common import PageImage
from .schemas.config import ProcessorConfig
from .service import parse_sort_request

LOG_FORMAT = "%(asctime)s | %(name)s | %(message)s"
LOG_DATEFMT = "%H:%M:%S"

DEFAULT_OUTPUT_DIR = Path("runs")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NEEDS_MANUAL_ORDER = 2


def setup_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """Setup logging: console + optional file handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (UTF-8). If None, console only.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stdout,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logging.getLogger().addHandler(fh)


def create_run_dir(parent_dir: Path) -> Path:
    """Create timestamped run subdirectory, e.g. parent_dir/run_2026-02-09_171500/."""
    ts = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    run_dir = parent_dir / f"run_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def load_source(
    source: Path,
    loader: PageImageLoader,
    title: Optional[str],
    chapter: Optional[str],
) -> Tuple[List[PageImage], str, Optional[str]]:
    """Load pages from an image directory or a JSON sort request file.

    Command-line title/chapter override the values of a request file.
    """
    if source.is_dir():
        return loader.from_directory(source), title or "", chapter

    with source.open("r", encoding="utf-8") as f:
        body = json.load(f)
    images, req_title, req_chapter = parse_sort_request(body, loader)
    return images, title or req_title, chapter if chapter is not None else req_chapter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Order manga/manhwa chapter pages using a vision language model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  manga-page-sorter ./chapter_12 --title "Solo Leveling" --chapter 12
  manga-page-sorter request.json --output-dir ./my_runs --log-level DEBUG

Each run creates a timestamped subdirectory inside --output-dir:
  output-dir/run_2026-02-09_171500/
    cache/vlm_responses/   raw responses of both stages
    logs/run.log           full log
    results/               YAML analysis and page order

Exit codes: 0 ordered, 1 error, 2 low confidence (manual ordering needed)
        """,
    )
    parser.add_argument("source", type=Path, help="Directory of page images or JSON request file")
    parser.add_argument("--title", "-t", type=str, default=None, help="Title of the work")
    parser.add_argument("--chapter", "-c", type=str, default=None, help="Chapter number")
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Parent directory for run folders (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--max-side",
        type=int,
        default=None,
        help="Downscale pages whose longest side exceeds this many pixels",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (see EXIT_* constants)
    """
    args = build_parser().parse_args(argv)

    if not args.source.exists():
        print(f"Error: source not found: {args.source}", file=sys.stderr)
        return EXIT_ERROR

    load_dotenv()

    run_dir = create_run_dir(args.output_dir)
    log_file = run_dir / "logs" / "run.log"
    setup_logging(args.log_level, log_file)
    logger = logging.getLogger(__name__)

    logger.info(f"Run directory: {run_dir}")
    logger.info(f"Source: {args.source}")

    try:
        loader = PageImageLoader(ImageLoadConfig(max_side=args.max_side))
        images, title, chapter = load_source(args.source, loader, args.title, args.chapter)

        config = ProcessorConfig(
            state_dir=run_dir,
            auto_save=True,
            max_image_side=args.max_side,
            log_level=args.log_level,
        )
        processor = ChapterProcessor(images, manga_title=title, chapter_number=chapter, config=config)
        result = processor.sort()

    except PageSortError as e:
        logger.error(f"Sorting failed ({type(e).__name__}): {e.message}")
        print(json.dumps(e.to_payload(), ensure_ascii=False, indent=2), file=sys.stderr)
        return EXIT_ERROR

    except (ValueError, OSError) as e:
        logger.error(f"Could not load pages: {e}")
        return EXIT_ERROR

    except KeyboardInterrupt:
        print("\nSorting interrupted by user", file=sys.stderr)
        return EXIT_ERROR

    except Exception as e:
        logger.exception(f"Error during sorting: {e}")
        return EXIT_ERROR

    print()
    print("=" * 60)
    print(f"Status:      {result.status}")
    print(f"Confidence:  {result.confidence:.0%}")
    print(f"Pages:       {len(result.order)}")
    for position, name in enumerate(result.order, start=1):
        print(f"  {position:3d}. {name}")
    for warning in result.warnings:
        print(f"Warning:     {warning}")
    print(f"Results:     {run_dir / 'results' / 'page_order.yaml'}")
    print(f"Log:         {log_file}")
    print("=" * 60)

    if result.needs_manual_ordering:
        return EXIT_NEEDS_MANUAL_ORDER
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
