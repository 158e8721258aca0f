#!/usr/bin/env python3
"""
Report a simulated fall to a running Fall Guardian service.

Usage:
    python -m scripts.simulate_fall
    python -m scripts.simulate_fall --url http://localhost:8000 --source bedroom-cam
    python -m scripts.simulate_fall --cancel
"""

import argparse
import sys
import time

import requests


def main():
    parser = argparse.ArgumentParser(description="Send a fall event to Fall Guardian")
    parser.add_argument("--url", type=str, default="http://localhost:8000", help="service base URL")
    parser.add_argument("--source", type=str, default="simulator", help="fall source id")
    parser.add_argument(
        "--cancel",
        action="store_true",
        help="cancel the active session instead of reporting a fall",
    )
    args = parser.parse_args()

    base = args.url.rstrip("/")
    try:
        if args.cancel:
            response = requests.post(
                f"{base}/api/session/cancel", json={"reason": "cancelled by operator"}, timeout=5
            )
        else:
            response = requests.post(
                f"{base}/api/falls",
                json={"detected_at": time.time(), "source_id": args.source},
                timeout=5,
            )
    except requests.RequestException as e:
        print(f"Request failed: {e}")
        sys.exit(1)

    print(f"{response.status_code}: {response.json()}")
    if response.status_code >= 400:
        sys.exit(1)


if __name__ == "__main__":
    main()
