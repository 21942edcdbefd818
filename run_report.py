#!/usr/bin/env python3
"""
CLI entrypoint for the signal/noise market research workflow.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from config import ResearchConfig
from logging_utils import get_error_info, log_exception, setup_run_logging
from models import ApiResponse
from report_render import render_markdown
from research_service import run_research


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Separate market research signals from noise.")
    parser.add_argument("query", type=str, nargs="?", help="Market research question.")
    parser.add_argument("--json", action="store_true", help="Print the JSON response envelope instead of Markdown.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    parser.add_argument("--log-dir", type=str, default=None, help="Write a timestamped DEBUG log file here.")
    parser.add_argument(
        "--examples",
        type=str,
        metavar="INDUSTRY",
        default=None,
        help="List example queries for an industry and exit.",
    )
    return parser


def print_examples(industry: str) -> int:
    queries = ResearchConfig.example_queries(industry)
    if not queries:
        print(f"No example queries for '{industry}'. Available industries:")
        for name in ResearchConfig.industries():
            print(f"  - {name}")
        return 1
    print(f"Example queries for {industry}:")
    for query in queries:
        print(f"  - {query}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.examples:
        return print_examples(args.examples)

    query = (args.query or "").strip()
    if not query:
        parser.error("a non-empty query is required")

    run_logger, log_path = setup_run_logging(query, log_dir=args.log_dir, debug=args.debug)
    if args.debug:
        run_logger.debug("Debug logging enabled.")

    try:
        sources, result = run_research(query)
    except Exception as exc:
        error = get_error_info(exc, {"query": query, "output": "json" if args.json else "markdown"})
        log_exception(run_logger, exc, context="run_research", **error["context"])
        if args.json:
            message = f"{error['error_type']}: {error['error_message']}"
            print(ApiResponse(success=False, error=message).model_dump_json(indent=2))
        else:
            print("❌ Research failed. Check logs for details.", file=sys.stderr)
        return 1

    if args.json:
        print(ApiResponse(success=True, data=result).model_dump_json(by_alias=True, indent=2))
    else:
        print(render_markdown(query, result, sources))

    logging.getLogger(__name__).info(
        f"Run complete: {len(result.signals)} signals, {len(result.noise)} noise, {len(sources)} sources"
    )
    if log_path:
        run_logger.info(f"Log file: {log_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
