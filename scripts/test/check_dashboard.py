# scripts/test/check_dashboard.py
"""
Smoke-check a running backend: resolve a user's scope, then print alerts and KPIs.
Usage: python scripts/test/check_dashboard.py --user 2 [--all] [--subsidiary 1]
"""

import argparse
import requests

BACKEND_URL = "http://localhost:8080/api/v1"


def call(method, path, user_id, api_key=None, **kwargs):
    headers = {"X-User-Id": str(user_id)}
    if api_key:
        headers["X-API-Key"] = api_key
    resp = requests.request(method, f"{BACKEND_URL}{path}", headers=headers, timeout=10, **kwargs)
    if resp.status_code >= 400:
        print(f"❌ {method} {path} → HTTP {resp.status_code}: {resp.text}")
        return None
    return resp.json()


def main(args):
    if args.all or args.subsidiary:
        body = {"all_subsidiaries": True} if args.all else {"subsidiary_id": args.subsidiary}
        scope = call("PUT", "/scope", args.user, args.api_key, json=body)
    else:
        scope = call("GET", "/scope", args.user, args.api_key)
    if scope is None:
        return
    target = "all subsidiaries" if scope["all_subsidiaries"] else f"subsidiary {scope['subsidiary_id']}"
    print(f"✅ Scope: {target} (accessible: {scope['accessible_subsidiaries']})")

    report = call("GET", "/alerts", args.user, args.api_key)
    if report:
        flag = " ⚠️ partial" if report["partial"] else ""
        print(f"\n🔔 {len(report['alerts'])} alerts{flag}")
        for a in report["alerts"]:
            print(f"   [{a['severity']:<8}] {a['title']}: {a['message']}")
        for category in report["unavailable"]:
            print(f"   ✗ {category} unavailable")

    kpis = call("GET", "/analytics/kpis", args.user, args.api_key)
    if kpis and kpis["data"]:
        d = kpis["data"]
        print(f"\n📊 Distance {d['fleet_distance']} km | {d['average_mileage']} km/L | "
              f"cost/km {d['cost_per_km']}")
        print(f"   Most efficient: {d['most_efficient']['vehicle_number']} | "
              f"Highest cost: {d['highest_cost']['vehicle_number']}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Smoke-check the fleet dashboard API")
    parser.add_argument("--user", type=int, required=True)
    parser.add_argument("--subsidiary", type=int)
    parser.add_argument("--all", action="store_true", help="Switch to the consolidated view first")
    parser.add_argument("--api-key")
    parser.add_argument("--url", default=BACKEND_URL)
    args = parser.parse_args()
    BACKEND_URL = args.url.rstrip("/")
    main(args)
