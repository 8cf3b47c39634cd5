#!/usr/bin/env python3
"""
Interactive HTTP client for the intent chatbot.

Examples:
  python client.py --url http://127.0.0.1:3000 --query "hello"
  python client.py --url http://127.0.0.1:3000               # interactive
"""

from __future__ import annotations

import argparse
import json
import sys
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Tuple


def _build_headers(args: argparse.Namespace) -> List[Tuple[str, str]]:
    headers: List[Tuple[str, str]] = []
    if args.auth:
        headers.append(("Authorization", args.auth))
    return headers


def ask(base_url: str, query: str, headers: List[Tuple[str, str]]) -> Tuple[int, Dict[str, Any]]:
    url = f"{base_url.rstrip('/')}/chat?{urllib.parse.urlencode({'q': query})}"
    req = urllib.request.Request(url, method="GET")
    for key, value in headers:
        req.add_header(key, value)
    try:
        with urllib.request.urlopen(req) as resp:
            return resp.status, json.loads(resp.read() or b"{}")
    except urllib.error.HTTPError as e:
        # 400 and 404 still carry a JSON body
        try:
            body = json.loads(e.read() or b"{}")
        except ValueError:
            body = {}
        return e.code, body


def main() -> None:
    parser = argparse.ArgumentParser(description="Client for the intent chatbot HTTP service")
    parser.add_argument("--url", default="http://127.0.0.1:3000", help="Base URL of the service")
    parser.add_argument("--query", default=None, help="One-shot query. Omit to enter interactive mode.")
    parser.add_argument("--auth", default=None, help="Authorization header if needed, e.g. 'Bearer xxx'")
    args = parser.parse_args()

    headers = _build_headers(args)
    try:
        if args.query is not None:
            status, body = ask(args.url, args.query, headers)
            print(status, json.dumps(body, ensure_ascii=False))
            return

        print("Connected. Type 'exit' to quit.")
        while True:
            try:
                text = input("you> ").strip()
            except (EOFError, KeyboardInterrupt):
                break
            if not text or text.lower() in {"exit", "quit"}:
                break
            status, body = ask(args.url, text, headers)
            print("bot>", body.get("reply", ""), f"[{status} {body.get('intent', '-')} {body.get('confidence_score', 0)}]")
    except urllib.error.URLError as e:
        print(f"HTTP request failed: {e}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
