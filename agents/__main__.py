"""CLI entry point: python -m agents --source-path /path/to/video.mp4 --prompt "pricing" """

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from agents.pipeline import run_pipeline
from lib.accuracy import TOLERANCE_SECONDS, run_accuracy_report


def _print_accuracy_report() -> bool:
    print("=== Trim Accuracy Validation ===")
    print(f"Tolerance: ±{TOLERANCE_SECONDS * 1000:.0f}ms")
    rows = run_accuracy_report()
    for i, row in enumerate(rows, 1):
        print(f"Test {i}: {row['name']}")
        print(f"  Expected duration: {row['expected']}s")
        print(f"  Calculated duration: {row['actual']}s")
        print(f"  Difference: {row['difference_ms']}ms")
        print(f"  Within tolerance: {'yes' if row['pass'] else 'NO'}")
    return all(row["pass"] for row in rows)


def main():
    parser = argparse.ArgumentParser(
        description="Reelcut - transcribe, search, and trim video"
    )
    parser.add_argument(
        "--source-path",
        help="Path to the source video",
    )
    parser.add_argument("--prompt", default="", help="Insight prompt (e.g. 'pricing')")
    parser.add_argument("--start", type=float, default=None, help="Trim start (seconds)")
    parser.add_argument("--end", type=float, default=None, help="Trim end (seconds)")
    parser.add_argument(
        "--mode",
        choices=["reencode", "copy"],
        default="reencode",
        help="Trim strategy: frame-accurate re-encode (default) or stream copy",
    )
    parser.add_argument(
        "--fallback",
        action="store_true",
        help="Trim with the frame-redraw fallback instead of ffmpeg",
    )
    parser.add_argument("--output-name", default=None, help="Stored filename for the trimmed clip")
    parser.add_argument(
        "--session-id",
        default=None,
        help="Session ID (auto-generated if omitted)",
    )
    parser.add_argument(
        "--agents",
        nargs="+",
        default=None,
        help="Run only specific agents (e.g. --agents transcribe insights)",
    )
    parser.add_argument(
        "--accuracy-report",
        action="store_true",
        help="Print the ±50ms accuracy check for the reference trim cases and exit",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.accuracy_report:
        sys.exit(0 if _print_accuracy_report() else 1)

    if not args.source_path:
        parser.error("--source-path is required")

    source = Path(args.source_path)
    if not source.exists():
        print(f"Error: source path does not exist: {source}")
        sys.exit(1)

    trim_options = {
        "start": args.start,
        "end": args.end,
        "mode": args.mode,
        "fallback": args.fallback,
        "output_name": args.output_name,
    }

    result = run_pipeline(
        source_path=str(source),
        prompt=args.prompt,
        session_id=args.session_id,
        agents=args.agents,
        trim_options=trim_options,
    )

    print(f"\nPipeline complete: {result['session_id']}")
    print(f"Status: {result['status']}")
    completed = result["pipeline"]["agents_completed"]
    print(f"Agents completed: {', '.join(completed)}")
    if "trim" in result:
        print(f"Trimmed clip: {result['trim']['output_ref']}")


if __name__ == "__main__":
    main()
