#!/usr/bin/env python3
"""Seed a running Snippet Vault API with sample snippets.

Usage:
    python scripts/seed_snippets.py --api-url http://localhost:8000 --token YOUR_JWT

    # Or with environment variables:
    API_URL=http://localhost:8000 AUTH_TOKEN=... python scripts/seed_snippets.py
"""

import argparse
import os
import sys
import time

import httpx

# Language is omitted on some entries so the classifier fills it in
SNIPPETS = [
    {
        "title": "Binary search",
        "code": """def binary_search(arr, target):
    \"\"\"Return the index of target in a sorted list, or -1.\"\"\"
    left, right = 0, len(arr) - 1
    while left <= right:
        mid = (left + right) // 2
        if arr[mid] == target:
            return mid
        elif arr[mid] < target:
            left = mid + 1
        else:
            right = mid - 1
    return -1
""",
        "tags": ["algorithms", "search"],
        "category": "algorithms",
        "complexity": "beginner",
        "visibility": "public",
    },
    {
        "title": "LRU cache with OrderedDict",
        "code": """from collections import OrderedDict


class LRUCache:
    def __init__(self, capacity):
        self.capacity = capacity
        self.items = OrderedDict()

    def get(self, key):
        if key not in self.items:
            return None
        self.items.move_to_end(key)
        return self.items[key]

    def put(self, key, value):
        self.items[key] = value
        self.items.move_to_end(key)
        if len(self.items) > self.capacity:
            self.items.popitem(last=False)
""",
        "language": "python",
        "topics": ["caching", "data-structures"],
        "category": "algorithms",
        "complexity": "intermediate",
        "visibility": "public",
    },
    {
        "title": "FastAPI health endpoint",
        "code": """from fastapi import FastAPI

app = FastAPI()


@app.get("/health")
async def health():
    return {"status": "ok"}
""",
        "category": "api",
        "domain": "backend",
        "visibility": "public",
    },
    {
        "title": "React counter hook",
        "code": """import { useState } from 'react';

export function useCounter(initial = 0) {
  const [count, setCount] = useState(initial);
  const increment = () => setCount((c) => c + 1);
  const decrement = () => setCount((c) => c - 1);
  return { count, increment, decrement };
}
""",
        "language": "javascript",
        "tags": ["react", "hooks"],
        "frameworks": ["React"],
        "category": "ui-components",
        "domain": "frontend",
        "visibility": "public",
    },
    {
        "title": "Express JSON error handler",
        "code": """const express = require('express');
const app = express();

app.use((err, req, res, next) => {
  console.error(err);
  res.status(err.status || 500).json({ message: err.message });
});

module.exports = app;
""",
        "category": "web-development",
        "domain": "backend",
        "visibility": "unlisted",
    },
    {
        "title": "Go worker pool",
        "code": """package main

import "fmt"

func worker(id int, jobs <-chan int, results chan<- int) {
    for j := range jobs {
        results <- j * 2
    }
}

func main() {
    jobs := make(chan int, 100)
    results := make(chan int, 100)
    for w := 1; w <= 3; w++ {
        go worker(w, jobs, results)
    }
    fmt.Println("started")
}
""",
        "topics": ["concurrency"],
        "complexity": "intermediate",
        "visibility": "public",
    },
    {
        "title": "Top customers by revenue",
        "code": """SELECT c.name, SUM(o.total) AS revenue
FROM customers c
JOIN orders o ON o.customer_id = c.id
WHERE o.created_at >= NOW() - INTERVAL '30 days'
GROUP BY c.name
ORDER BY revenue DESC
LIMIT 10;
""",
        "category": "database",
        "domain": "data",
        "visibility": "private",
    },
    {
        "title": "Rust option chaining",
        "code": """fn first_even(values: &[i32]) -> Option<i32> {
    values.iter().copied().find(|v| v % 2 == 0)
}

fn main() {
    let numbers = vec![1, 3, 4, 7];
    match first_even(&numbers) {
        Some(v) => println!("{}", v),
        None => println!("none"),
    }
}
""",
        "complexity": "beginner",
        "visibility": "public",
    },
]


def create_snippet(
    api_url: str,
    token: str,
    snippet: dict,
    max_retries: int = 4,
    base_delay: float = 1.0,
) -> dict | None:
    """Create a snippet, retrying rate limits and server errors with backoff."""
    url = f"{api_url.rstrip('/')}/snippets"
    headers = {"Authorization": f"Bearer {token}"}

    for attempt in range(max_retries):
        try:
            response = httpx.post(url, json=snippet, headers=headers, timeout=30)

            if response.status_code == 429 or response.status_code >= 500:
                delay = base_delay * (2**attempt)
                if attempt < max_retries - 1:
                    print(f"HTTP {response.status_code}, retrying in {delay:.1f}s...", end=" ")
                    time.sleep(delay)
                    continue
                print(f"failed after {max_retries} attempts")
                return None

            if response.status_code == 400:
                errors = response.json().get("detail", {}).get("errors", [])
                print("rejected: " + "; ".join(e["message"] for e in errors))
                return None

            response.raise_for_status()
            return response.json()

        except httpx.TimeoutException:
            delay = base_delay * (2**attempt)
            if attempt < max_retries - 1:
                print(f"timeout, retrying in {delay:.1f}s...", end=" ")
                time.sleep(delay)
                continue
            print(f"timeout after {max_retries} attempts")
            return None
        except httpx.HTTPError as e:
            print(f"error: {e}")
            return None

    return None


def wait_for_enrichment(
    api_url: str,
    token: str,
    snippet_ids: list[str],
    timeout: float = 120.0,
    interval: float = 2.0,
) -> set[str]:
    """Poll until every snippet has been enriched or ``timeout`` elapses.

    Returns:
        Ids still flagged ``needs_analysis``.
    """
    headers = {"Authorization": f"Bearer {token}"}
    pending = set(snippet_ids)
    deadline = time.monotonic() + timeout

    while pending and time.monotonic() < deadline:
        for snippet_id in list(pending):
            response = httpx.get(
                f"{api_url.rstrip('/')}/snippets/{snippet_id}",
                headers=headers,
                timeout=30,
            )
            if response.is_success and not response.json().get("needs_analysis", True):
                pending.discard(snippet_id)
        if pending:
            time.sleep(interval)

    return pending


def print_trending(api_url: str, token: str, timeframe: str) -> None:
    response = httpx.get(
        f"{api_url.rstrip('/')}/search/trending",
        params={"timeframe": timeframe},
        headers={"Authorization": f"Bearer {token}"},
        timeout=30,
    )
    response.raise_for_status()
    data = response.json()
    print(f"\nTrending ({timeframe}):")
    for rank, item in enumerate(data["items"], 1):
        print(f"{rank:2}. [{item['score']:3}] {item['snippet']['title']}")


def main():
    parser = argparse.ArgumentParser(description="Seed snippets for testing")
    parser.add_argument("--api-url", default=os.environ.get("API_URL"), help="API base URL")
    parser.add_argument(
        "--token",
        default=os.environ.get("AUTH_TOKEN"),
        help="Bearer token issued by the identity provider",
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for background enrichment to finish for each snippet",
    )
    parser.add_argument(
        "--wait-timeout", type=float, default=120.0, help="Max seconds to wait for enrichment"
    )
    parser.add_argument(
        "--delay", type=float, default=0.2, help="Delay between requests (seconds)"
    )
    parser.add_argument(
        "--trending",
        choices=["24h", "7d", "30d"],
        help="Print the trending feed for this timeframe when done",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print snippets without creating")

    args = parser.parse_args()

    if not args.api_url:
        print("Error: --api-url or API_URL environment variable required")
        sys.exit(1)

    if args.dry_run:
        print(f"DRY RUN - Would create {len(SNIPPETS)} snippets:\n")
        for i, s in enumerate(SNIPPETS, 1):
            language = s.get("language", "(detect)")
            print(f"{i:2}. {s['title']} [{language}, {s.get('visibility', 'private')}]")
        sys.exit(0)

    if not args.token:
        print("Error: --token or AUTH_TOKEN environment variable required")
        sys.exit(1)

    print(f"\nSeeding {len(SNIPPETS)} snippets to {args.api_url}\n")

    created: list[str] = []
    for i, snippet in enumerate(SNIPPETS, 1):
        print(f"[{i:2}/{len(SNIPPETS)}] {snippet['title']}...", end=" ")

        result = create_snippet(args.api_url, args.token, snippet)
        if result:
            confidence = result.get("language_confidence", 0)
            print(f"✓ id={result['id']} language={result['language']} ({confidence:.2f})")
            created.append(result["id"])
        else:
            print("✗")

        if args.delay and i < len(SNIPPETS):
            time.sleep(args.delay)

    print(f"\nDone: {len(created)}/{len(SNIPPETS)} created")

    if args.wait and created:
        print("Waiting for enrichment...", end=" ")
        pending = wait_for_enrichment(args.api_url, args.token, created, args.wait_timeout)
        if pending:
            print(f"{len(pending)} still pending: {', '.join(sorted(pending))}")
        else:
            print("all enriched")

    if args.trending:
        print_trending(args.api_url, args.token, args.trending)


if __name__ == "__main__":
    main()


# # Dry run - list snippets without creating
# python scripts/seed_snippets.py --api-url http://localhost:8000 --dry-run

# # Create snippets and wait for enrichment
# python scripts/seed_snippets.py --api-url http://localhost:8000 --token YOUR_JWT --wait

# # Then show what is trending this week
# python scripts/seed_snippets.py --api-url http://localhost:8000 --token YOUR_JWT --trending 7d
