#!/usr/bin/env python3
"""
ensure_gpu.py

Purpose:
  Ensure a GPU with a given `serial_number` is registered in the GPU tracker.
  - If found: print the record (JSON) and exit 0 with status "exists".
  - If not found: create it from the supplied flags and print the new record.

API:
  Base: http://localhost:3000/api   (override with --base-url or env GPU_TRACKER_URL)
  List:   GET  /gpus          -> JSON list of records
  Create: POST /gpus          -> body: {"vendor": ..., "name": ..., ...}

Examples:
  python ensure_gpu.py SN-4090-0001 --vendor NVIDIA --name "RTX 4090" \
      --generation "Ada Lovelace" --owner lab
  python ensure_gpu.py SN-4090-0001 --vendor NVIDIA --name "RTX 4090" \
      --generation "Ada Lovelace" --owner lab --memory 24GB --release-year 2022

Exit codes:
  0 = success (exists or created)
  1 = handled application error (including a rejected request)
  2 = network/HTTP error
"""

from __future__ import annotations
import os
import sys
import json
import argparse
import requests
from typing import Any, Dict, List, Optional

DEFAULT_BASE_URL = "http://localhost:3000/api"
RESOURCE_PATH = "gpus"


class ApiRejected(Exception):
    """The tracker answered with a 4xx error body."""

    def __init__(self, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Request rejected ({status_code}): {json.dumps(body)}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Ensure a GPU serial number is registered in the tracker; create if missing.")
    p.add_argument("serial_number", help="GPU serial number (must be unique).")
    p.add_argument("--vendor", help="Vendor, e.g. NVIDIA.")
    p.add_argument("--name", help="Model name, e.g. 'RTX 4090'.")
    p.add_argument("--generation", help="Architecture generation, e.g. 'Ada Lovelace'.")
    p.add_argument("--owner", help="Owning team or person.")
    p.add_argument("--borrowee", default=None, help="Optional current borrower.")
    p.add_argument("--status", default=None, help="Initial status (defaults to 'available' on the server).")
    p.add_argument("--memory", default=None, help="Optional memory size, e.g. 24GB.")
    p.add_argument("--release-year", default=None, help="Optional release year.")
    p.add_argument("--purchase-date", default=None, help="Optional purchase date (YYYY-MM-DD).")
    p.add_argument("--base-url", default=os.getenv("GPU_TRACKER_URL", DEFAULT_BASE_URL),
                   help=f"Base API URL (default: {DEFAULT_BASE_URL})")
    p.add_argument("--timeout", type=float, default=15.0,
                   help="HTTP timeout in seconds (default: 15)")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Verbose logging to stderr.")
    return p.parse_args(argv)


def build_payload(args: argparse.Namespace) -> Dict[str, Any]:
    fields = (
        "vendor", "name", "generation", "serial_number", "owner",
        "borrowee", "status", "memory", "release_year", "purchase_date",
    )
    return {field: getattr(args, field) for field in fields if getattr(args, field) not in (None, "")}


def vprint(enabled: bool, *args: Any) -> None:
    if enabled:
        print(*args, file=sys.stderr)


def api_list_gpus(session: requests.Session, base_url: str, timeout: float, verbose: bool) -> List[Dict[str, Any]]:
    url = f"{base_url.rstrip('/')}/{RESOURCE_PATH}"
    vprint(verbose, f"GET {url}")
    r = session.get(url, headers={"Accept": "application/json"}, timeout=timeout)
    r.raise_for_status()
    data = r.json()
    if not isinstance(data, list):
        raise ValueError(f"Expected list from GET {url}, got: {type(data).__name__}")
    return data


def find_gpu_by_serial(gpus: List[Dict[str, Any]], serial_number: str) -> Optional[Dict[str, Any]]:
    for item in gpus:
        if isinstance(item, dict) and item.get("serial_number") == serial_number:
            return item
    return None


def api_create_gpu(session: requests.Session, base_url: str, payload: Dict[str, Any],
                   timeout: float, verbose: bool) -> Dict[str, Any]:
    url = f"{base_url.rstrip('/')}/{RESOURCE_PATH}"
    vprint(verbose, f"POST {url} json={payload}")
    r = session.post(url, headers={"Accept": "application/json"}, json=payload, timeout=timeout)
    if 400 <= r.status_code < 500:
        try:
            body = r.json()
        except ValueError:
            body = r.text
        raise ApiRejected(r.status_code, body)
    r.raise_for_status()
    return r.json()


def main(argv: Optional[List[str]] = None, session: Optional[requests.Session] = None) -> int:
    args = parse_args(argv)
    session = session or requests.Session()
    try:
        existing = find_gpu_by_serial(
            api_list_gpus(session, args.base_url, args.timeout, args.verbose),
            args.serial_number,
        )
        if existing:
            print(json.dumps({
                "status": "exists",
                "serial_number": args.serial_number,
                "record": existing,
            }, indent=2))
            return 0

        created = api_create_gpu(session, args.base_url, build_payload(args), args.timeout, args.verbose)
        print(json.dumps({
            "status": "created",
            "serial_number": args.serial_number,
            "record": created.get("gpu", created),
        }, indent=2))
        return 0

    except ApiRejected as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except requests.exceptions.RequestException as e:
        print(f"NETWORK_ERROR: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
