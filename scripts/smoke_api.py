#!/usr/bin/env python3
"""
Smoke test for a running Itinerary Worker API.
Creates a job and polls it until it reaches a terminal state.

Usage: python scripts/smoke_api.py [BASE_URL] [DESTINATION] [DAYS]
"""

import sys
import time
from typing import Optional

import requests

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
DESTINATION = sys.argv[2] if len(sys.argv) > 2 else "Paris, France"
DAYS = int(sys.argv[3]) if len(sys.argv) > 3 else 3

POLL_INTERVAL_SECONDS = 2
POLL_TIMEOUT_SECONDS = 180


class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    END = '\033[0m'


def print_step(name: str):
    print(f"\n{Colors.BLUE}=== {name} ==={Colors.END}")


def print_success(msg: str):
    print(f"{Colors.GREEN}✓ {msg}{Colors.END}")


def print_error(msg: str):
    print(f"{Colors.RED}✗ {msg}{Colors.END}")


def print_info(msg: str):
    print(f"{Colors.YELLOW}ℹ {msg}{Colors.END}")


def check_health() -> bool:
    print_step("Health Check")
    try:
        r = requests.get(f"{BASE_URL}/health", timeout=10)
        r.raise_for_status()
        data = r.json()
        print_success("GET /health")
        print_info(f"Database: {data.get('database', 'unknown')}")
        return True
    except requests.RequestException as e:
        print_error(f"GET /health - {e}")
        return False


def check_rejects_bad_input() -> bool:
    print_step("Input Validation")
    r = requests.post(f"{BASE_URL}/api", json={"destination": DESTINATION, "durationDays": 0}, timeout=10)
    if r.status_code != 400:
        print_error(f"POST /api with durationDays=0 - expected 400, got {r.status_code}: {r.text}")
        return False
    print_success(f"POST /api with durationDays=0 rejected: {r.json().get('error')}")
    return True


def create_job() -> Optional[str]:
    print_step("Create Job")
    r = requests.post(f"{BASE_URL}/api", json={"destination": DESTINATION, "durationDays": DAYS}, timeout=10)
    if r.status_code != 202:
        print_error(f"POST /api - {r.status_code}: {r.text}")
        return None
    job_id = r.json()["jobId"]
    print_success(f"POST /api - accepted job {job_id}")
    return job_id


def poll_job(job_id: str) -> Optional[dict]:
    print_step("Poll Job")
    deadline = time.monotonic() + POLL_TIMEOUT_SECONDS
    while time.monotonic() < deadline:
        r = requests.get(f"{BASE_URL}/api/jobs/{job_id}", timeout=10)
        if r.status_code != 200:
            print_error(f"GET /api/jobs/{job_id} - {r.status_code}: {r.text}")
            return None
        record = r.json()
        if record["status"] != "processing":
            return record
        print_info("still processing...")
        time.sleep(POLL_INTERVAL_SECONDS)
    print_error(f"Job {job_id} still processing after {POLL_TIMEOUT_SECONDS}s")
    return None


def main():
    print(f"\n{Colors.BLUE}{'='*60}")
    print("Itinerary Worker API - Smoke Test")
    print(f"{'='*60}{Colors.END}\n")
    print_info(f"Testing against: {BASE_URL}")

    if not check_health():
        print_error("\nHealth check failed. Is the API running?")
        sys.exit(1)

    if not check_rejects_bad_input():
        sys.exit(1)

    job_id = create_job()
    if not job_id:
        sys.exit(1)

    record = poll_job(job_id)
    if not record:
        sys.exit(1)

    if record["status"] == "completed":
        print_success(f"Job completed with {len(record['itinerary'])} day(s)")
        for day in record["itinerary"]:
            print_info(f"Day {day['day']}: {day['theme']} ({len(day['activities'])} activities)")
    else:
        print_error(f"Job failed: {record['error']}")
        sys.exit(1)

    print(f"\n{Colors.GREEN}{'='*60}")
    print("Smoke test passed!")
    print(f"{'='*60}{Colors.END}\n")


if __name__ == "__main__":
    main()
