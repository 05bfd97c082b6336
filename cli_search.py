"""Terminal client that reuses the in-process search pipeline."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

from product_search.models import SearchResponse
from product_search.search_service import get_search_service

MAX_RESULTS = 100
GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


async def perform_query(query: str) -> SearchResponse:
    return await get_search_service().search(query)


def interactive_shell(runner: asyncio.Runner) -> None:
    print("Interactive product search. Type 'exit' to quit.")
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
        response = runner.run(perform_query(query))
        pretty_print_response(query, response)


def pretty_print_response(query: str, payload: SearchResponse) -> None:
    meta = payload.meta
    color = GREEN if meta.latencyMs < 200 else RED
    latency_label = f"{color}{meta.latencyMs:.1f} ms{RESET}"
    corrected = f" -> {meta.correctedQuery}" if meta.correctedQuery else ""
    print(
        f"Query: {query}{corrected} | method: {meta.enhancementMethod.value} | "
        f"results: {meta.totalResults} | latency: {latency_label}"
    )
    for idx, item in enumerate(payload.data[:MAX_RESULTS], start=1):
        stock = "in stock" if item.stock > 0 else "out of stock"
        print(f"  {idx:02d}. {item.title} | {item.category.value} | {item.sellingPrice:.0f} | {item.rating:.1f} | {stock}")


def batch_mode(runner: asyncio.Runner, file_path: Path) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            response = runner.run(perform_query(query))
            pretty_print_response(query, response)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the search service")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    args = parser.parse_args(list(argv) if argv is not None else None)

    # One event loop for the whole session so the LLM client can reuse connections.
    with asyncio.Runner() as runner:
        if args.batch:
            batch_mode(runner, args.batch)
        elif args.query:
            response = runner.run(perform_query(args.query))
            pretty_print_response(args.query, response)
        else:
            interactive_shell(runner)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
