"""Create a credential in MongoDB.

Usage:
  python scripts/create_user.py --username alice --password '...' --role admin

NOTE: This is intended for local/dev and first deployments.
"""

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from portfolio_api.auth import create_user
from portfolio_api.config import load_config
from portfolio_api.db import connect, get_database, init_db


async def _run(username: str, password: str, role: str) -> dict:
    cfg = load_config()
    client = connect(cfg.MONGODB_URI)
    try:
        database = get_database(client)
        await init_db(database)
        return await create_user(database, username=username, password=password, role=role)
    finally:
        await client.close()


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--role", default="admin")
    args = ap.parse_args()

    u = asyncio.run(_run(args.username.strip(), args.password, args.role))

    print("Created user:")
    print(u)


if __name__ == "__main__":
    main()
