import argparse
import json
import os
import random
from datetime import date, timedelta

import requests

BASE_URL = os.getenv("REPORT_BASE_URL", "http://127.0.0.1:8000")

# Synthetic learner profiles: first-try success, activity per day, curve shape
PROFILES = {
    "alice": {"first_try": 0.85, "activity": (4, 9), "easing": "linear", "meetings_pct": 75.0},
    "peter": {"first_try": 0.45, "activity": (1, 5), "easing": "ease-in", "meetings_pct": 25.0},
    "marco": {"first_try": 0.65, "activity": (0, 8), "easing": "ease-out", "meetings_pct": 0.0},
}

STEPS = [str(step) for step in range(1, 41)]


def simulate_submissions(rng, user_id, first_try):
    rows = []
    for step in STEPS:
        if rng.random() < 0.15:
            continue
        correct = rng.random() < first_try
        rows.append({"user_id": user_id, "step_id": step, "status": "correct" if correct else "wrong"})
        retries = 0
        while not correct and retries < 4:
            retries += 1
            correct = rng.random() < 0.6
            rows.append({"user_id": user_id, "step_id": step, "status": "correct" if correct else "wrong"})
    return rows


def simulate_series(rng, user_id, activity, days, start):
    low, high = activity
    series = []
    cumulative = 0.0
    for day in range(days):
        total = float(rng.randint(low, high))
        cumulative += total
        series.append({
            "user_id": user_id,
            "date_iso": (start + timedelta(days=day)).isoformat(),
            "day_index": day,
            "x_norm": day / max(1, days - 1),
            "activity_platform": total,
            "activity_total": total,
            "cum_activity": cumulative,
        })
    for row in series:
        row["y_norm"] = row["cum_activity"] / cumulative if cumulative else 0.0
    return series


def performance_row(user_id, profile, submissions, series):
    correct = sum(1 for row in submissions if row["status"] == "correct")
    steps = {row["step_id"] for row in submissions}
    active_days = sum(1 for row in series if row["activity_total"] > 0)
    success_rate = 100.0 * correct / len(submissions) if submissions else 0.0
    return {
        "user_id": user_id,
        "name": user_id.title(),
        "total": float(len(steps)),
        "total_pct": 100.0 * len(steps) / len(STEPS),
        "submissions": len(submissions),
        "unique_steps": len(steps),
        "correct_submissions": correct,
        "success_rate": round(success_rate, 1),
        "persistence": round(len(submissions) / max(1, len(steps)), 2),
        "efficiency": round(correct / max(1, len(submissions)), 2),
        "active_days": active_days,
        "active_days_ratio": round(active_days / max(1, len(series)), 2),
        "effort_index": round(len(submissions) / (len(STEPS) * 2), 2),
        "consistency_index": round(active_days / max(1, len(series)), 2),
        "struggle_index": round(1 - profile["first_try"], 2),
        "meetings_attended": int(profile["meetings_pct"] // 10),
        "meetings_attended_pct": profile["meetings_pct"],
        "simple_segment": "Leader" if success_rate >= 80 else "Balanced",
    }


def curve_row(user_id, profile, series):
    total = sum(row["activity_total"] for row in series) or 1.0

    def quantile_time(fraction):
        for row in series:
            if row["cum_activity"] >= fraction * total:
                return round(row["x_norm"], 2)
        return 1.0

    t25, t50, t75 = quantile_time(0.25), quantile_time(0.5), quantile_time(0.75)
    active = [row["activity_total"] for row in series]
    mean = sum(active) / len(active)
    spread = (sum((a - mean) ** 2 for a in active) / len(active)) ** 0.5
    return {
        "user_id": user_id,
        "name": user_id.title(),
        "t25": t25,
        "t50": t50,
        "t75": t75,
        "frontload_index": round(0.5 - t50, 2),
        "easing_label": profile["easing"],
        "consistency": round(sum(1 for a in active if a > 0) / len(active), 2),
        "burstiness": round(min(1.0, spread / mean) if mean else 1.0, 2),
        "total": total,
        "total_pct": 100.0,
    }


def build_bundle(seed=7, days=28, start=date(2024, 3, 1)):
    rng = random.Random(seed)
    days = max(1, days)
    bundle = {"performance": [], "dynamic": [], "series": [], "submissions": [], "excluded_user_ids": []}
    for user_id, profile in PROFILES.items():
        submissions = simulate_submissions(rng, user_id, profile["first_try"])
        series = simulate_series(rng, user_id, profile["activity"], days, start)
        bundle["submissions"].extend(submissions)
        bundle["series"].extend(series)
        bundle["performance"].append(performance_row(user_id, profile, submissions, series))
        bundle["dynamic"].append(curve_row(user_id, profile, series))
    return bundle


def post_bundle(bundle, base_url=BASE_URL):
    try:
        r = requests.post(f"{base_url}/reports/cohort", json=bundle, timeout=30)
    except requests.RequestException as e:
        print(f"Server connection error: {e}")
        return None
    if not r.ok:
        print(f"Cohort request failed: {r.status_code}")
        return None
    data = r.json()
    print(f"Reports generated: {len(data['reports'])}, missing: {len(data['missing'])}")
    return data


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate a synthetic cohort bundle for the report engine.")
    parser.add_argument("--output", default="bundle.json", help="Where to write the bundle (default: bundle.json)")
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--days", type=int, default=28)
    parser.add_argument("--post", action="store_true", help="Send the bundle to a running report API")
    args = parser.parse_args(argv)

    bundle = build_bundle(seed=args.seed, days=args.days)
    with open(args.output, "w", encoding="utf-8") as fh:
        json.dump(bundle, fh, indent=2)
    print(f"Wrote {len(bundle['performance'])} students and {len(bundle['submissions'])} submissions to {args.output}")

    if args.post:
        return 0 if post_bundle(bundle) is not None else 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
