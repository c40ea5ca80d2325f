#!/usr/bin/env python3
"""
Bulk Order Flow Simulation Script

Drives one bulk order through the running API: paste, validate, fix a
row, validate again, commit to the cart. Useful as a smoke test after a
deploy or a catalog RPC change.

Usage:
    python scripts/simulate_bulk_order.py                        # Sample paste, anonymous
    python scripts/simulate_bulk_order.py --user-id USER         # Commit to USER's cart
    python scripts/simulate_bulk_order.py --file parts.tsv       # Paste from a file
    python scripts/simulate_bulk_order.py --base-url URL         # Custom API URL
    python scripts/simulate_bulk_order.py --keep                 # Leave the session open
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

import httpx


# ===================
# CONFIGURATION
# ===================

DEFAULT_BASE_URL = "http://localhost:8000"
TIMEOUT = 30.0

SAMPLE_PASTE = "\n".join([
    "ABC123\t5",
    "DEF-456,10",
    "WP2198597;2",
    "BADROW",
    "GHI789 0",
    "W10295370A    1",
])


# ===================
# OUTPUT HELPERS
# ===================

class Colors:
    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"


STATUS_COLORS = {
    "pending": Colors.DIM,
    "valid": Colors.GREEN,
    "warning": Colors.YELLOW,
    "error": Colors.RED,
}


def log_success(msg: str):
    print(f"{Colors.GREEN}[OK] {msg}{Colors.RESET}")


def log_error(msg: str):
    print(f"{Colors.RED}[FAIL] {msg}{Colors.RESET}")


def log_info(msg: str):
    print(f"{Colors.BLUE}[INFO] {msg}{Colors.RESET}")


def log_warning(msg: str):
    print(f"{Colors.YELLOW}[WARN] {msg}{Colors.RESET}")


def log_header(msg: str):
    print(f"\n{Colors.BOLD}{Colors.CYAN}{msg}{Colors.RESET}")


def print_rows(session: dict):
    for row in session["rows"]:
        color = STATUS_COLORS.get(row["status"], "")
        price = row.get("discounted_price") or row.get("unit_price") or "-"
        note = row.get("error_message") or row.get("description") or ""
        print(
            f"   {color}{row['status']:<8}{Colors.RESET} "
            f"{row['sku_text']:<16} x{row['quantity']:<5} {price:>10}  {note}"
        )
    counts = session["counts"]
    print(
        f"   {Colors.DIM}valid {counts['valid']} / warning {counts['warning']} / "
        f"error {counts['error']} / pending {counts['pending']}{Colors.RESET}"
    )


# ===================
# API CLIENT
# ===================

class APIError(Exception):
    """API call failed."""
    def __init__(self, message: str, status_code: int, body: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}


class APIClient:
    """Thin wrapper over httpx for the bulk order endpoints."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, timeout=TIMEOUT)

    def request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        response = self.client.request(method, path, json=json)
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {"raw": response.text[:500]}
            message = body.get("error", {}).get("message") or response.reason_phrase
            raise APIError(f"{response.status_code} on {method} {path}: {message}", response.status_code, body)
        if response.status_code == 204:
            return {}
        return response.json()

    def close(self):
        self.client.close()


# ===================
# SIMULATION
# ===================

class BulkOrderSimulation:

    def __init__(self, base_url: str, text: str, user_id: Optional[str], keep: bool):
        self.api = APIClient(base_url)
        self.text = text
        self.user_id = user_id
        self.keep = keep
        self.session_id: Optional[str] = None

    def run(self) -> bool:
        start = time.time()
        print(f"\n{Colors.BOLD}>>> Starting Bulk Order Simulation{Colors.RESET}")
        print(f"   Base URL: {self.api.base_url}")
        print(f"   User: {self.user_id or 'anonymous'}")

        try:
            self.paste()
            session = self.validate()
            session = self.fix_first_error(session)
            self.commit(session)
            log_header(f"Done in {time.time() - start:.1f}s")
            return True
        except APIError as e:
            log_error(str(e))
            return False
        except httpx.HTTPError as e:
            log_error(f"Could not reach API: {e}")
            return False
        finally:
            if self.session_id and not self.keep:
                self._close_session()
            self.api.close()

    def paste(self):
        log_header("1. Paste")
        session = self.api.request("POST", "/api/bulk-orders", {
            "text": self.text,
            "user_id": self.user_id,
        })
        self.session_id = session["session_id"]
        lines = [line for line in self.text.splitlines() if line.strip()]
        log_success(f"Session {self.session_id}: {len(session['rows'])} of {len(lines)} lines parsed")
        print_rows(session)

    def validate(self) -> dict:
        log_header("2. Validate")
        session = self.api.request("POST", f"/api/bulk-orders/{self.session_id}/validate")
        log_success("Validation complete")
        print_rows(session)
        return session

    def fix_first_error(self, session: dict) -> dict:
        """Delete the first error row, then revalidate what is left."""
        errors = [row for row in session["rows"] if row["status"] == "error"]
        if not errors:
            return session

        log_header("3. Remove unmatched row")
        row = errors[0]
        self.api.request("DELETE", f"/api/bulk-orders/{self.session_id}/rows/{row['id']}")
        log_info(f"Deleted {row['sku_text']} ({row.get('error_message')})")

        try:
            return self.validate()
        except APIError as e:
            if e.status_code == 429:
                log_warning("Rate limited, committing previous validation")
                return self.api.request("GET", f"/api/bulk-orders/{self.session_id}")
            raise

    def commit(self, session: dict):
        log_header("4. Add to cart")
        if not session["counts"]["can_commit"]:
            log_warning("Nothing valid to add, skipping commit")
            return
        if not self.user_id:
            log_warning("Anonymous session, commit needs --user-id")
            return

        result = self.api.request("POST", f"/api/bulk-orders/{self.session_id}/commit")
        log_success(f"Added {len(result['added'])} items, skipped {result['skipped']}")
        cart = result.get("cart") or {}
        if cart:
            print(f"   Cart: {cart['count']} units, subtotal {cart['subtotal']}")

    def _close_session(self):
        try:
            self.api.request("DELETE", f"/api/bulk-orders/{self.session_id}")
        except APIError as e:
            log_warning(f"Could not close session: {e}")


def main():
    parser = argparse.ArgumentParser(
        description="Bulk Order Flow Simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/simulate_bulk_order.py                      # Sample paste
  python scripts/simulate_bulk_order.py --user-id u-123      # Commit to a cart
  python scripts/simulate_bulk_order.py --file order.csv     # Paste from file
        """
    )
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"API base URL (default: {DEFAULT_BASE_URL})"
    )
    parser.add_argument("--user-id", default=None, help="Acting user (anonymous when omitted)")
    parser.add_argument("--file", type=Path, default=None, help="Read the paste from a file")
    parser.add_argument("--keep", action="store_true", help="Leave the session open")

    args = parser.parse_args()

    text = SAMPLE_PASTE
    if args.file:
        try:
            text = args.file.read_text(encoding="utf-8")
        except OSError as e:
            print(f"Error: cannot read {args.file}: {e}")
            sys.exit(1)

    simulation = BulkOrderSimulation(
        base_url=args.base_url,
        text=text,
        user_id=args.user_id,
        keep=args.keep,
    )
    sys.exit(0 if simulation.run() else 1)


if __name__ == "__main__":
    main()
