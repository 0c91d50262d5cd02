"""
dashboard_load.py — simple async load script for the public dashboard endpoint

Usage:
  python dashboard_load.py --base http://127.0.0.1:8000 --in dashboard_links.jsonl --count 15000 --concurrency 200

Reports the status-code mix, so 403 (private dashboards, plan/quota) and
429 (rate limiting) answers show up next to the 200s.
"""
import argparse
import asyncio
import json
import random
import time
from collections import Counter
from datetime import datetime, timezone

import httpx

GROUP_BYS = ["count", "timeseries", "countries", "devices", "browsers", "referers"]

def _now_iso():
    return datetime.now(timezone.utc).isoformat()

def _load_links(path):
    links = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            obj = json.loads(line)
            if obj.get("domain") and obj.get("key"):
                links.append((obj["domain"], obj["key"]))
    return links

async def _hit_one(client: httpx.AsyncClient, base: str, domain: str, key: str, ip: str):
    params = {"domain": domain, "key": key, "groupBy": random.choice(GROUP_BYS), "interval": "7d"}
    try:
        r = await client.get(f"{base}/analytics/dashboard", params=params, headers={"x-forwarded-for": ip}, timeout=10)
        return str(r.status_code)
    except httpx.HTTPError as exc:
        return type(exc).__name__

async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--in", dest="links_file", default="dashboard_links.jsonl")
    parser.add_argument("--count", type=int, default=15000)
    parser.add_argument("--concurrency", type=int, default=200)
    parser.add_argument("--clients", type=int, default=50, help="distinct x-forwarded-for addresses")
    args = parser.parse_args()

    links = _load_links(args.links_file)
    if not links:
        print(f"No links found in {args.links_file}. Run seed_links.py first.")
        return
    ips = [f"10.0.{i // 256}.{i % 256}" for i in range(max(1, args.clients))]

    start_iso = _now_iso()
    t0 = time.perf_counter()
    outcomes = Counter()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        sem = asyncio.Semaphore(args.concurrency)

        async def _task(i):
            async with sem:
                domain, key = random.choice(links)
                outcomes[await _hit_one(client, args.base, domain, key, random.choice(ips))] += 1

        await asyncio.gather(*(_task(i) for i in range(args.count)))

    dt = time.perf_counter() - t0
    end_iso = _now_iso()
    print(f"START: {start_iso}")
    print(f"END:   {end_iso}")
    print(f"TOTAL: {dt:.3f} s")
    print("OPS:   " + ", ".join(f"{k}={v}" for k, v in sorted(outcomes.items())))
    if dt > 0:
        print(f"RPS:   {args.count/dt:.1f} req/s")

if __name__ == "__main__":
    asyncio.run(main())
