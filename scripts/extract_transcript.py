"""
CLI tool to run the transcript extraction locally.

Usage:
    python scripts/extract_transcript.py <transcript_file>
    cat transcript.txt | python scripts/extract_transcript.py

Examples:
    # Extract from a saved transcript
    python scripts/extract_transcript.py calls/2026-10-01.txt

    # Quick check of a single sentence
    python scripts/extract_transcript.py --text "Mein Name ist Anna Schmidt, meine Nummer ist 0521 445566."
"""

import argparse
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dotenv import load_dotenv
load_dotenv(".env.local")

from src.logging_config import setup_logging, get_logger
from src.services.data_extraction import extract

setup_logging()
logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Extract customer data from a call transcript")
    parser.add_argument("transcript_file", nargs="?", help="Path to a transcript text file (default: stdin)")
    parser.add_argument("--text", help="Transcript text given inline")
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation")

    args = parser.parse_args(argv)

    if args.text is not None:
        transcript = args.text
    elif args.transcript_file:
        with open(args.transcript_file, encoding="utf-8") as fh:
            transcript = fh.read()
    else:
        transcript = sys.stdin.read()

    result = extract(transcript)
    logger.info(
        "transcript_extracted",
        source=args.transcript_file or ("inline" if args.text is not None else "stdin"),
        call_type=result.type.value,
        confidence=round(result.confidence_score, 3),
        has_contact=result.has_contact,
    )
    print(result.model_dump_json(indent=args.indent))


if __name__ == "__main__":
    main()
