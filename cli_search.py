"""Terminal client that reuses the in-process search logic."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional

from shoesearch.models import SearchResponse
from shoesearch.search import search_shoes

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def perform_query(query: str, size: Optional[str] = None, gender: Optional[str] = None) -> SearchResponse:
    return asyncio.run(search_shoes(query, size, gender))


def pretty_print_response(response: SearchResponse) -> None:
    if response.error:
        print(f"Query: {response.query} | {RED}error: {response.error}{RESET}")
        return
    filters = []
    if response.size:
        filters.append(f"size={response.size}")
    if response.gender:
        filters.append(f"gender={response.gender}")
    print(
        f"Query: {response.query} | {' '.join(filters) or 'no filters'} | "
        f"showing {GREEN}{len(response.shoes)}{RESET} of {response.totalFound}"
    )
    for idx, shoe in enumerate(response.shoes, start=1):
        image = "img" if shoe.imageUrl else "-"
        print(f"  {idx:02d}. {shoe.name} | {shoe.price} | {image} | {shoe.productUrl}")


def interactive_shell(size: Optional[str], gender: Optional[str]) -> None:
    print("Interactive shoe search. Type 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not query:
            continue
        if query.lower() in {"exit", "quit"}:
            return
        pretty_print_response(perform_query(query, size, gender))


def batch_mode(file_path: Path, size: Optional[str], gender: Optional[str]) -> int:
    failures = 0
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            response = perform_query(query, size, gender)
            pretty_print_response(response)
            failures += response.error is not None
    return 1 if failures else 0


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Search the Allbirds catalog from the terminal")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--size", help="Shoe size, EU (42) or US (9)")
    parser.add_argument("--gender", choices=["men", "women"], help="Restrict to men's or women's models")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    if args.batch:
        return batch_mode(args.batch, args.size, args.gender)
    if args.query:
        response = perform_query(args.query, args.size, args.gender)
        pretty_print_response(response)
        return 1 if response.error else 0
    interactive_shell(args.size, args.gender)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
