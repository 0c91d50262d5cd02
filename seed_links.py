# seed_links.py
import argparse, time, json
from datetime import datetime, timezone
import psycopg2

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
PLANS = ("free", "pro", "business", "enterprise")

def base62(n: int) -> str:
    if n == 0: return "0"
    out = []
    while n > 0:
        n, r = divmod(n, 62)
        out.append(ALPHABET[r])
    return "".join(reversed(out))

def now_iso():
    return datetime.now(timezone.utc).isoformat()

def main():
    ap = argparse.ArgumentParser(description="Seed projects and links for the dashboard gate")
    ap.add_argument("--host", default="localhost")
    ap.add_argument("--port", type=int, default=5433)
    ap.add_argument("--db",   default="slink_db")
    ap.add_argument("--user", default="slink")
    ap.add_argument("--password", default="slink_password")
    ap.add_argument("--domain", default="slk.sh")
    ap.add_argument("--count", type=int, default=2000, help="links to insert")
    ap.add_argument("--projects", type=int, default=20, help="projects to spread links over")
    ap.add_argument("--usage-limit", type=int, default=1000)
    ap.add_argument("--start", type=int, default=1_000_000, help="counter start")
    ap.add_argument("--out", default="dashboard_links.jsonl")
    args = ap.parse_args()

    start_iso = now_iso()
    t0 = time.perf_counter()
    ok = 0

    conn = psycopg2.connect(
        host=args.host, port=args.port, dbname=args.db,
        user=args.user, password=args.password
    )
    conn.autocommit = False
    cur = conn.cursor()

    # Ensure tables exist (idempotent); matches the DBStorage lookup query
    cur.execute("""
    CREATE TABLE IF NOT EXISTS projects (
      id                  VARCHAR(64) PRIMARY KEY,
      plan                VARCHAR(32) NOT NULL DEFAULT 'free',
      usage               BIGINT NOT NULL DEFAULT 0,
      usage_limit         BIGINT NOT NULL DEFAULT 1000,
      conversion_enabled  BOOLEAN NOT NULL DEFAULT FALSE
    );
    CREATE TABLE IF NOT EXISTS links (
      id          VARCHAR(64) PRIMARY KEY,
      domain      VARCHAR(255) NOT NULL,
      key         VARCHAR(190) NOT NULL,
      dashboard   BOOLEAN NOT NULL DEFAULT FALSE,
      project_id  VARCHAR(64) REFERENCES projects (id),
      created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
      UNIQUE (domain, key)
    );
    """)
    conn.commit()

    # Projects cycle through the plan tiers; every fifth one is over its limit
    for p in range(args.projects):
        plan = PLANS[p % len(PLANS)]
        usage = args.usage_limit * 2 if p % 5 == 4 else p * 10
        cur.execute("""
            INSERT INTO projects(id, plan, usage, usage_limit, conversion_enabled)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
        """, (f"ws_seed_{p}", plan, usage, args.usage_limit, plan in ("business", "enterprise")))
    conn.commit()

    with open(args.out, "w", encoding="utf-8") as outf:
        for i in range(args.count):
            n = args.start + i
            key = base62(n).rjust(6, "0")
            project_id = f"ws_seed_{i % args.projects}"
            dashboard = i % 10 != 0  # every tenth link keeps its dashboard private
            cur.execute("""
                INSERT INTO links(id, domain, key, dashboard, project_id)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (domain, key) DO NOTHING
            """, (f"link_{key}", args.domain, key, dashboard, project_id))
            ok += cur.rowcount  # 1 if inserted, 0 if existed
            outf.write(json.dumps({"domain": args.domain, "key": key, "dashboard": dashboard}) + "\n")
            # commit in batches for speed
            if (i + 1) % 500 == 0:
                conn.commit()
        conn.commit()

    cur.close()
    conn.close()

    dt = time.perf_counter() - t0
    end_iso = now_iso()
    print(f"START: {start_iso}")
    print(f"END:   {end_iso}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"INSERTED: {ok}/{args.count} links across {args.projects} projects")
    if dt > 0:
        print(f"RPS: {ok/dt:.1f} rows/s")

if __name__ == "__main__":
    main()
