import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from portfolio_api.auth import bootstrap_admin_if_needed
from portfolio_api.config import load_config
from portfolio_api.db import connect, get_database, init_db


async def _run() -> None:
    cfg = load_config()
    client = connect(cfg.MONGODB_URI)
    try:
        database = get_database(client)
        await init_db(database)
        await bootstrap_admin_if_needed(database, cfg)
    finally:
        await client.close()
    print(f"DB initialized: {cfg.MONGODB_URI}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(levelname)s %(message)s")
    asyncio.run(_run())


if __name__ == "__main__":
    main()
