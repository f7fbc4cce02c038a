#!/usr/bin/env python3
"""Verification script for finance backend connectivity and credentials."""

import sys
from pathlib import Path

from dotenv import load_dotenv

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Load environment variables from .env file
load_dotenv()

from finance_dashboard.client import RequestError, ResourceClient, TokenProvider  # noqa: E402
from finance_dashboard.config import Config  # noqa: E402


def verify_backend():
    """Verify the finance backend is reachable and accepts our token."""
    print("Finance Backend Verification")
    print("=" * 60)

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"\n✗ Error: invalid configuration: {e}")
        print("\nCheck FINANCE_API_BASE_URL, REQUEST_TIMEOUT and MAX_WORKERS in your .env file.")
        return 1

    token_provider = TokenProvider(token=config.api_token, token_file=config.token_file)
    print(f"\nBackend: {config.api_base_url}")
    if token_provider.get_token():
        print("Token: found")
    else:
        print("Token: none (requests will be sent unauthenticated)")
        print("   Set FINANCE_API_TOKEN or write a token to " + config.token_file)

    client = ResourceClient(
        base_url=config.api_base_url,
        token_provider=token_provider,
        timeout=config.request_timeout,
    )

    checks = [
        ("Net worth summary", client.get_net_worth_summary),
        ("Holdings", client.get_holdings),
        ("Goals", client.get_goals),
    ]
    try:
        for step, (label, check) in enumerate(checks, start=1):
            print(f"\n{step}. {label}...")
            try:
                check()
                print(f"   ✓ {label} reachable")
            except RequestError as e:
                print(f"   ✗ Error: {e}")
                if e.status is None:
                    print("\nThe backend could not be reached. Is it running, and is the URL correct?")
                elif e.status in (401, 403):
                    print("\nThe backend rejected the token. Generate a new one and update FINANCE_API_TOKEN.")
                elif e.status == 404:
                    print("\nEndpoint not found. Check that FINANCE_API_BASE_URL points at the API root.")
                return 1
    finally:
        client.close()

    print("\n" + "=" * 60)
    print("✓ Finance backend verification completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(verify_backend())
