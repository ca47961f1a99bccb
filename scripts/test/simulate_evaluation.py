# scripts/test/simulate_evaluation.py
"""Trigger an evaluation or a status change against a running backend."""

import argparse
import requests

BACKEND_URL = "http://localhost:8080/api/v1/alert-manager"


def evaluate(location_id):
    resp = requests.post(BACKEND_URL, json={"action": "evaluate", "locationId": location_id}, timeout=10)
    print(f"✅ evaluate {location_id} → HTTP {resp.status_code}: {resp.json()}")


def update(alert_id, status, token):
    resp = requests.post(BACKEND_URL,
                         json={"action": "update", "alertId": alert_id, "status": status},
                         headers={"Authorization": f"Bearer {token}"}, timeout=10)
    print(f"✅ alert #{alert_id} → {status} → HTTP {resp.status_code}: {resp.json()}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Exercise the alert-manager endpoint")
    parser.add_argument("--action", default="evaluate", choices=["evaluate", "update"])
    parser.add_argument("--location", help="Location id (evaluate)")
    parser.add_argument("--alert", type=int, help="Alert id (update)")
    parser.add_argument("--status", default="resolved",
                        choices=["active", "in_queue", "resolved", "false_alarm"])
    parser.add_argument("--token", default="", help="Bearer token from the auth service (update)")
    parser.add_argument("--url", default=BACKEND_URL)
    args = parser.parse_args()
    BACKEND_URL = args.url

    if args.action == "evaluate":
        evaluate(args.location)
    else:
        update(args.alert, args.status, args.token)
