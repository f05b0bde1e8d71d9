#!/usr/bin/env python
"""
Send a URL or an image file to the ingestion endpoint.

Run manually:
    python scripts/send_bookmark.py url https://example.com --thoughts "read later"
    python scripts/send_bookmark.py image ~/Desktop/shot.png --title "Chart" --summary "Q3 numbers"
"""
import argparse
import base64
import logging
import os
import sys
from pathlib import Path

import httpx

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("send_bookmark")

DEFAULT_ENDPOINT = "http://localhost:8000/api/ingest"
REQUEST_TIMEOUT_SECONDS = 120.0


def build_body(args: argparse.Namespace) -> dict:
    manual = bool(args.title or args.summary)
    body: dict = {"type": args.kind, "autoGenerate": not manual}
    if args.kind == "url":
        body["url"] = args.target
    else:
        path = Path(args.target).expanduser()
        body["data_b64"] = base64.b64encode(path.read_bytes()).decode("ascii")
        body["filename"] = path.name
    if manual:
        body["title"] = args.title or ""
        body["summary"] = args.summary or ""
    if args.thoughts:
        body["thoughts"] = args.thoughts
    return body


def main() -> int:
    parser = argparse.ArgumentParser(description="Save a URL or screenshot as a bookmark.")
    parser.add_argument("kind", choices=["url", "image"])
    parser.add_argument("target", help="URL to save, or path to an image file")
    parser.add_argument("--title", help="Manual title (turns off auto-generation)")
    parser.add_argument("--summary", help="Manual summary (turns off auto-generation)")
    parser.add_argument("--thoughts", help="Free-text notes to attach")
    parser.add_argument("--endpoint", default=os.getenv("INSTANT_BOOKMARK_URL", DEFAULT_ENDPOINT))
    parser.add_argument("--api-key", default=os.getenv("API_ACCESS_KEY"))
    args = parser.parse_args()

    if not args.api_key:
        parser.error("an API key is required (--api-key or API_ACCESS_KEY)")

    body = build_body(args)
    logger.info("Sending %s bookmark to %s", args.kind, args.endpoint)
    try:
        resp = httpx.post(
            args.endpoint,
            json=body,
            headers={"X-API-Key": args.api_key},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        logger.error("Request failed: %s", exc)
        return 1

    try:
        envelope = resp.json()
    except ValueError:
        envelope = {"ok": False, "error": resp.text or f"HTTP {resp.status_code}"}
    print(envelope)
    return 0 if envelope.get("ok") else 1


if __name__ == "__main__":
    sys.exit(main())
