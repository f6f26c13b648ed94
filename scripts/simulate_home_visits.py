# scripts/simulate_home_visits.py
import random
import sys
import time

import requests

BASE_URL = "http://localhost:8000"
HEADERS = {"X-User-Id": "sim-nurse", "X-User-Role": "assessor"}


def _patch(sid, section, field, value):
    res = requests.patch(
        f"{BASE_URL}/sessions/{sid}/fields",
        json={"section": section, "field": field, "value": value},
        headers=HEADERS,
    )
    res.raise_for_status()


def fill_visit(sid, i):
    _patch(sid, "basic", "clientId", f"sim-client-{i}")
    _patch(sid, "basic", "assessmentDate", "2026-10-16")
    _patch(sid, "basic", "consultationReasons", random.sample(["memory", "falls", "mood", "caregiver"], 2))
    _patch(sid, "slums", "cognitive_education_level", random.choice(["High School Graduate", "Less than High School"]))
    for name, top in (("slums_q1_score", 1), ("slums_q6_score", 3), ("slums_q7_score", 5), ("slums_q9_score", 4)):
        _patch(sid, "slums", name, random.randint(0, top))
    for n in range(1, 16):
        # leave a few items blank, like a visit cut short
        if random.random() < 0.9:
            _patch(sid, "mental", f"gds_q{n}", random.choice([True, False]))


def run_simulation(n=10):
    print(f"Simulating {n} home visits...")

    for i in range(n):
        try:
            res = requests.post(f"{BASE_URL}/sessions/", json={}, headers=HEADERS)
            res.raise_for_status()
            sid = res.json()["session_id"]

            fill_visit(sid, i)
            saved = requests.post(f"{BASE_URL}/sessions/{sid}/save", json={"status": "draft"}, headers=HEADERS)
            scores = requests.get(f"{BASE_URL}/sessions/{sid}/scores", headers=HEADERS).json()

            if saved.status_code == 200:
                body = saved.json()
                print(
                    f"[{i + 1}/{n}] {body['outcome']} {body['assessment_id']} | "
                    f"SLUMS {scores['cognitive']['total']} ({scores['cognitive']['interpretation']}) | "
                    f"GDS {scores['depression']['total']}/{scores['depression']['answered']}"
                )
            else:
                print(f"[{i + 1}/{n}] Save error: {saved.status_code} {saved.text}")

            requests.delete(f"{BASE_URL}/sessions/{sid}", headers=HEADERS)
        except requests.RequestException as e:
            print(f"Connection Error: {e}")
            break

        time.sleep(0.05)

    print("\nSimulation complete.")


if __name__ == "__main__":
    try:
        requests.get(f"{BASE_URL}/")
    except requests.RequestException:
        print("Server not running!")
        sys.exit(1)

    run_simulation()
