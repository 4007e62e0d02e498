# intelligensi/__main__.py
from __future__ import annotations

import uvicorn

from intelligensi.config import settings


def run() -> None:
    uvicorn.run("intelligensi.main:app", host=settings.app_host, port=settings.app_port, log_config=None)


if __name__ == "__main__":
    run()
