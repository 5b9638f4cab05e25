import os
import sys
import json
import random
import requests

BASE_URL = os.environ.get("SMOKE_URL") or os.environ.get("DEV_URL", "http://127.0.0.1:5002")
API = f"{BASE_URL.rstrip('/')}/api"


def get(path: str):
    r = requests.get(f"{API}{path}", timeout=10)
    r.raise_for_status()
    return r


def post(path: str, payload: dict):
    r = requests.post(f"{API}{path}", json=payload, timeout=60)
    r.raise_for_status()
    return r


def _blob(center, n, start, label=None):
    out = []
    for i in range(n):
        p = {"id": start + i, "features": [c + random.gauss(0, 0.5) for c in center]}
        if label is not None:
            p["label"] = label
        out.append(p)
    return out


def main():
    random.seed(0)
    centers = [(0.0, 0.0), (4.0, 0.0), (0.0, 4.0)]
    print(f"[smoke] Target: {API}")
    print("[smoke] /health:", get("/health").status_code)

    sid = post("/sessions", {}).json()["session_id"]
    seed = []
    for label, c in enumerate(centers):
        seed += _blob(c, 4, 1000 + 10 * label, label)
    print("[smoke] seed:", post(f"/sessions/{sid}/seed", {"patches": seed}).status_code)

    pool = []
    for k, c in enumerate(centers):
        pool += _blob(c, 30, 100 * k, None)
    print("[smoke] unlabeled:", post(f"/sessions/{sid}/unlabeled", {"patches": pool}).status_code)

    batch = post(f"/sessions/{sid}/batch", {"size": 3}).json()["patches"]
    print("[smoke] batch:", json.dumps([(p["id"], round(p["confidence"], 3)) for p in batch]))

    labels = {str(p["id"]): p["id"] // 100 for p in batch}
    summary = post(f"/sessions/{sid}/labels", {"labels": labels}).json()
    print("[smoke] labels:", json.dumps(summary))


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("[smoke] FAILED:", e)
        sys.exit(1)
