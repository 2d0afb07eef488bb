#!/usr/bin/env python
from typing import Literal
import uvicorn

from chunkstore import config
from chunkstore.api import Api


def factory() -> Api:
    return Api()


def main():
    try:
        import uvloop as _
        loop: Literal['uvloop'] | Literal['auto'] = "uvloop"
    except ImportError:
        loop = "auto"

    uvicorn.run(
        f"{__name__}:factory",
        factory=True,
        host=config.SERVER_HOST,
        port=config.SERVER_PORT,
        loop=loop,
        log_level="info",
        access_log=False
    )


if __name__ == "__main__":
    main()
