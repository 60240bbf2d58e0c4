import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import uvicorn

from portfolio_api.config import ConfigError, load_config


def main() -> None:
    try:
        cfg = load_config()
    except ConfigError as e:
        # Refuse to start without a signing secret.
        print(f"[api] {e}", file=sys.stderr)
        raise SystemExit(1)

    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO),
        format="[%(name)s] %(levelname)s %(message)s",
    )
    uvicorn.run(
        "portfolio_api.api.server:create_app",
        factory=True,
        host=cfg.API_HOST,
        port=cfg.PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
