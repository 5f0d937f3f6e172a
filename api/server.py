import argparse
import sys

import uvicorn
from loguru import logger

from .settings import settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tank arena authoritative server")
    parser.add_argument("--host", default=settings.host, help="Bind address for the server")
    parser.add_argument("--port", type=int, default=settings.port, help="Port for the server")
    parser.add_argument("--log-level", default=settings.log_level, help="loguru level")
    return parser.parse_args()


def main():
    args = parse_args()
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())
    logger.info("Server running at http://{}:{}", args.host, args.port)
    uvicorn.run("api.app:app", host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
