"""Harvest articles from Gmail newsletters and print them.

Usage:
    python scripts/fetch_articles.py
    python scripts/fetch_articles.py --label "Tech News" --max-items 10 --json
    python scripts/fetch_articles.py --include-seen
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import settings
from newsmail.exceptions import NewsMailError
from newsmail.gmail_source import GmailMailSource
from newsmail.pipeline import run_pipeline
from newsmail.storage import SqliteKeyValueStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
logger = logging.getLogger("fetch_articles")


def main():
    parser = argparse.ArgumentParser(description="Harvest ranked articles from Gmail newsletters.")
    parser.add_argument("--label", help="Gmail label name (default: stored config)")
    parser.add_argument("--query", help="Fallback Gmail search query when the label is missing")
    parser.add_argument("--max-messages", type=int, help="How many messages to read")
    parser.add_argument("--max-items", type=int, help="How many articles to return")
    parser.add_argument(
        "--include-seen", action="store_true",
        help="Return previously seen articles and do not mark results as seen",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    args = parser.parse_args()

    try:
        articles = asyncio.run(run_pipeline(
            GmailMailSource.from_settings(),
            SqliteKeyValueStore(settings.db_path),
            label_name=args.label,
            query=args.query,
            max_messages=args.max_messages,
            max_items=args.max_items,
            exclude_seen=not args.include_seen,
        ))
    except NewsMailError as e:
        logger.error("%s", e)
        sys.exit(1)

    if args.json:
        print(json.dumps([a.to_dict() for a in articles], ensure_ascii=False, indent=2))
        return

    for i, article in enumerate(articles, 1):
        print(f"{i:2d}. [{article.score:5.1f}] {article.title}")
        print(f"    {article.canonical_url}")


if __name__ == "__main__":
    main()
