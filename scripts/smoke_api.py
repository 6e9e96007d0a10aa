#!/usr/bin/env python3
"""
Manual smoke checks against a running API server.
Start the server first: python -m travelcrm.api.app
Then run this: python scripts/smoke_api.py
"""

import json
import os

import requests

BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")


def banner(title):
    print("\n" + "=" * 50)
    print(title)
    print("=" * 50)


def check_health():
    banner("CHECK: Health")
    response = requests.get(f"{BASE_URL}/health")
    print(f"Status Code: {response.status_code}")
    print(f"Response: {json.dumps(response.json(), indent=2)}")
    return response.status_code == 200


def check_login_invalid():
    banner("CHECK: Login with Invalid Credentials")
    response = requests.post(
        f"{BASE_URL}/api/auth/login",
        json={"email": "nobody@example.com", "password": "wrong-password"},
    )
    print(f"Status Code: {response.status_code}")
    return response.status_code == 401


def login(email, password):
    banner("CHECK: Login")
    response = requests.post(
        f"{BASE_URL}/api/auth/login",
        json={"email": email, "password": password},
    )
    print(f"Status Code: {response.status_code}")
    if response.status_code == 200:
        data = response.json()
        print(f"User: {json.dumps(data['user'], indent=2)}")
        return data["token"]
    print(f"Response: {json.dumps(response.json(), indent=2)}")
    return None


def check_list_without_token():
    banner("CHECK: Leads Without Token")
    response = requests.get(f"{BASE_URL}/api/leads")
    print(f"Status Code: {response.status_code}")
    return response.status_code == 401


def check_me(token):
    banner("CHECK: Current User and Scope")
    response = requests.get(
        f"{BASE_URL}/api/auth/me",
        headers={"Authorization": f"Bearer {token}"},
    )
    print(f"Status Code: {response.status_code}")
    print(f"Response: {json.dumps(response.json(), indent=2)}")
    return response.status_code == 200


def check_list(token, name, **params):
    banner(f"CHECK: List {name} {params or ''}")
    response = requests.get(
        f"{BASE_URL}/api/{name}",
        headers={"Authorization": f"Bearer {token}"},
        params=params,
    )
    print(f"Status Code: {response.status_code}")
    if response.status_code == 200:
        data = response.json()["data"]
        print(f"Pagination: {data['pagination']}")
        print(f"First ids: {[r['id'] for r in data['records'][:10]]}")
    else:
        print(f"Response: {json.dumps(response.json(), indent=2)}")
    return response.status_code == 200


def check_dashboard(token):
    banner("CHECK: Dashboard Stats")
    response = requests.get(
        f"{BASE_URL}/api/dashboard/stats",
        headers={"Authorization": f"Bearer {token}"},
        params={"breakdowns": "true"},
    )
    print(f"Status Code: {response.status_code}")
    print(f"Response: {json.dumps(response.json(), indent=2)}")
    return response.status_code == 200


def main():
    banner("Travel CRM API Smoke Checks")
    print(f"Base URL: {BASE_URL}")
    print("Make sure the API server is running!")

    email = input("Email: ").strip()
    password = input("Password: ").strip()
    if not email or not password:
        print("ERROR: email and password are required")
        return

    results = {
        "Health": check_health(),
        "Login Invalid": check_login_invalid(),
        "List Without Token": check_list_without_token(),
    }

    token = login(email, password)
    results["Login Valid"] = token is not None
    if token:
        results["Me"] = check_me(token)
        for name in ("leads", "bookings", "customers", "quotes", "payments"):
            results[f"List {name}"] = check_list(token, name)
        results["Leads page 2"] = check_list(token, "leads", page=2, limit=5)
        results["Leads search"] = check_list(token, "leads", search="'; DROP TABLE leads; --")
        results["Dashboard"] = check_dashboard(token)

    banner("SUMMARY")
    for name, ok in results.items():
        print(f"  {'PASS' if ok else 'FAIL'}  {name}")


if __name__ == "__main__":
    main()
