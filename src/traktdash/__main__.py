"""traktdash entrypoint.

Run with:
  python -m traktdash
"""

import logging
import os

import uvicorn


def main() -> None:
    logging.basicConfig(
        level=os.getenv("TDASH_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("TDASH_HOST", "0.0.0.0")
    port = int(os.getenv("TDASH_PORT", "8000"))
    reload = os.getenv("TDASH_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("traktdash.app:app", host=host, port=port, reload=reload, log_config=None)

if __name__ == "__main__":
    main()
