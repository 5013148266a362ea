"""
Manual Sold-Out Reset Trigger

Calls the cron endpoint on demand and prints the cycle report.
Run from project root: python scripts/trigger_reset.py --mode all

Author: Khalil Bannouri
Version: 3.1.0
"""

import argparse
import os
import sys
from datetime import datetime

import httpx

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8001")
ENDPOINT = "/api/cron/reset-sold-out"


def trigger_reset(
    base_url: str,
    mode: str,
    tenant_id: str | None,
    secret: str | None,
    timezone: str | None = None,
) -> dict | None:
    """Invoke the trigger and return its JSON report (None on failure)."""
    headers = {"Authorization": f"Bearer {secret}"} if secret else {}
    params = {"mode": mode}
    if tenant_id:
        params["tenant_id"] = tenant_id
    if timezone:
        params["timezone"] = timezone

    try:
        response = httpx.post(f"{base_url}{ENDPOINT}", params=params, headers=headers, timeout=60.0)
    except httpx.HTTPError as e:
        print(f"\n❌ Could not reach {base_url}: {e}")
        return None

    if response.status_code != 200:
        print(f"\n❌ HTTP {response.status_code}: {response.text}")
        return None

    return response.json()


def print_report(report: dict) -> None:
    """Pretty-print a cycle report."""
    print(f"\n📊 RESULTS ({report['mode']} @ {report['timestamp']}):")
    print(f"   Items reset: {report['totalItemsReset']}")
    print(f"   Tenants affected: {report['tenantsAffected']}")
    print(f"   Tenants failed: {report['tenantsFailed']}")

    print("\n📋 TENANTS:")
    print("-" * 60)
    for detail in report["details"]:
        status = detail["status"]
        icon = {"reset": "✅", "skipped": "⏭️", "failed": "❌"}.get(status, "•")
        extra = detail.get("skipReason") or detail.get("errorKind") or ""
        name = detail["tenantName"] or detail["tenantId"]
        print(f"   {icon} {name:<30} {status:<8} {detail['resetCount']:>4} {extra}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Trigger the sold-out reset cycle")
    parser.add_argument("--mode", choices=["smart", "all"], default="smart")
    parser.add_argument("--tenant", dest="tenant_id", default=None, help="Reset a single tenant")
    parser.add_argument("--timezone", default=None, help="Reset only tenants in this IANA timezone")
    parser.add_argument("--base-url", default=API_BASE_URL)
    parser.add_argument("--secret", default=os.getenv("CRON_SECRET"), help="Defaults to $CRON_SECRET")
    args = parser.parse_args()

    print("=" * 60)
    print("🔄 SOLD-OUT RESET TRIGGER")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🌐 Target: {args.base_url}{ENDPOINT}")
    print(f"⚙️  Mode: {args.mode}")
    print("=" * 60)

    report = trigger_reset(args.base_url, args.mode, args.tenant_id, args.secret, args.timezone)
    if report is None:
        return 1

    print_report(report)
    print("\n" + "=" * 60)
    return 0 if report["tenantsFailed"] == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
