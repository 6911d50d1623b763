#!/usr/bin/env python3
"""
Post-Deployment Health Check Script

Validates that a deployed InverApp API answers, reaches its database and
enforces authentication on the back-office routes.

Usage:
    python scripts/health_check.py --url <DEPLOYMENT_URL> --environment <staging|production>

Checks Performed:
    1. /api/health returns 200 and the database is connected
    2. /api/stock/projects rejects a request without a token (401)
    3. /api/broker-quote/<slug>/<token> rejects an unknown link (404)

Exit Codes:
    0: All health checks passed
    1: One or more health checks failed
"""

import argparse
import sys
import time
import requests
from typing import Dict, Tuple


def check_status(url: str, endpoint: str, expected_status: int, timeout: int = 10) -> Tuple[bool, str]:
    """
    Checks that an endpoint answers with the expected HTTP status code.

    Returns:
        Tuple[bool, str]: (success, message)
    """
    full_url = f"{url.rstrip('/')}{endpoint}"

    try:
        response = requests.get(full_url, timeout=timeout)
    except requests.exceptions.Timeout:
        return False, f"✗ {endpoint} timed out after {timeout} seconds"
    except requests.exceptions.RequestException as e:
        return False, f"✗ {endpoint} request failed: {str(e)}"

    if response.status_code == expected_status:
        return True, f"✓ {endpoint} returned {response.status_code}"
    return False, f"✗ {endpoint} returned {response.status_code} (expected {expected_status})"


def check_health_endpoint(url: str, timeout: int = 10) -> Tuple[bool, str]:
    """Checks /api/health and its database status."""
    full_url = f"{url.rstrip('/')}/api/health"

    try:
        response = requests.get(full_url, timeout=timeout)
    except requests.exceptions.Timeout:
        return False, f"✗ /api/health timed out after {timeout} seconds"
    except requests.exceptions.RequestException as e:
        return False, f"✗ /api/health request failed: {str(e)}"

    try:
        data = response.json()
    except ValueError:
        return False, f"✗ /api/health returned invalid JSON ({response.status_code})"

    db_status = (data.get('database') or {}).get('status', 'unknown')
    if response.status_code == 200 and db_status == 'connected':
        return True, "✓ /api/health returned 200, database connected"
    return False, f"✗ /api/health returned {response.status_code}, database status: {db_status}"


def run_health_checks(url: str, environment: str) -> Dict[str, Tuple[bool, str]]:
    print(f"\n{'='*60}")
    print(f"Post-Deployment Health Checks - {environment.upper()}")
    print(f"{'='*60}\n")
    print(f"Target URL: {url}\n")

    checks = {
        "api_health": lambda: check_health_endpoint(url, timeout=15),
        "auth_enforced": lambda: check_status(url, "/api/stock/projects", 401, timeout=15),
        "broker_link_rejected": lambda: check_status(
            url, "/api/broker-quote/health-check/invalid-token", 404, timeout=15),
    }

    results = {}
    for name, check in checks.items():
        print(f"Check: {name}...")
        results[name] = check()
        print(f"  {results[name][1]}\n")

    return results


def print_summary(results: Dict[str, Tuple[bool, str]], environment: str) -> bool:
    print(f"{'='*60}")
    print(f"Health Check Summary - {environment.upper()}")
    print(f"{'='*60}\n")

    passed = sum(1 for success, _ in results.values() if success)
    total = len(results)

    for check_name, (success, _) in results.items():
        print(f"{'✓' if success else '✗'} {check_name}: {'PASS' if success else 'FAIL'}")

    print(f"\nTotal: {passed}/{total} checks passed\n")
    return passed == total


def main():
    parser = argparse.ArgumentParser(description="Run post-deployment health checks")
    parser.add_argument("--url", required=True, help="Deployment URL to check")
    parser.add_argument("--environment", required=True, choices=["staging", "production"],
                        help="Deployment environment")
    parser.add_argument("--retry", type=int, default=3,
                        help="Number of attempts if checks fail (default: 3)")
    parser.add_argument("--retry-delay", type=int, default=10,
                        help="Delay in seconds between attempts (default: 10)")
    args = parser.parse_args()

    for attempt in range(1, args.retry + 1):
        if attempt > 1:
            print(f"\nRetry attempt {attempt}/{args.retry}")
            time.sleep(args.retry_delay)

        if print_summary(run_health_checks(args.url, args.environment), args.environment):
            sys.exit(0)

    print(f"✗ HEALTH CHECKS FAILED AFTER {args.retry} ATTEMPTS", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
