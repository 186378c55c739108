"""
Run one live search through every configured backend and print the details.

Run from backend with:
  python scripts/run_search.py
  python scripts/run_search.py "Your search query here"
  python scripts/run_search.py --chat "Your question here"

Reads TAV_API_KEY, SERP_API_KEY, BRAVE_API_KEY and LLM_* from env (or .env).
Prints per-backend outcomes, the status slots, then the formatted chunks.
"""

import asyncio
import logging
import sys
from textwrap import shorten

from searchmesh.config import get_settings
from searchmesh.main import build_assistant


def _trunc(s: str, max_len: int = 72) -> str:
    return shorten(s, width=max_len, placeholder="…") if s else ""


def _section(title: str) -> None:
    print()
    print("=" * 80)
    print(f"  {title}")
    print("=" * 80)


def _sub(title: str) -> None:
    print(f"\n--- {title} ---")


async def run(query: str, chat: bool) -> None:
    settings = get_settings()
    assistant = build_assistant(settings)
    orchestrator = assistant.orchestrator

    _section("Search fan-out")
    print(f"Input query: {query}")
    print(f"Backends: {', '.join(orchestrator.backend_names)}")
    results = await orchestrator.search(query)

    _sub("Per-backend results")
    print(f"{'source':<12}  {'ok':<5}  detail")
    print("-" * 80)
    for r in results:
        detail = (r.url or "") if r.ok else (r.error or "")
        print(f"{r.source:<12}  {str(r.ok):<5}  {_trunc(detail, 58)}")

    _sub("Status slots")
    for slot in orchestrator.build_status(results):
        print(f"  {slot.glyph} {slot.label}")

    _sub("Sources")
    for i, url in enumerate(orchestrator.source_urls(results), 1):
        print(f"  [{i}] {url}")

    if chat:
        _section("Assistant turn")
        reply = await assistant.answer("run-search", query)
    else:
        _section("Formatted results")
        reply = await assistant.search_only(query)

    for i, chunk in enumerate(reply.chunks, 1):
        _sub(f"Chunk {i}/{len(reply.chunks)} ({len(chunk)} chars)")
        print(chunk)

    _section("DONE")
    ok = sum(1 for r in results if r.ok)
    print(f"Query: {query}")
    print(f"{ok}/{len(results)} backends succeeded → {len(reply.chunks)} chunks, generated={reply.generated}")
    print()


def main() -> None:
    args = sys.argv[1:]
    chat = "--chat" in args
    args = [a for a in args if a != "--chat"]
    query = (args[0] if args else "How does the Federal Reserve control inflation?").strip()
    if not query:
        query = "How does the Federal Reserve control inflation?"

    logging.getLogger().setLevel(logging.WARNING)
    asyncio.run(run(query, chat))


if __name__ == "__main__":
    main()
