#!/usr/bin/env python3
"""Entry point for running the room service."""

import argparse
import logging

from dotenv import load_dotenv

load_dotenv()

import uvicorn  # noqa: E402

from config import HOST, LOG_LEVEL, PORT  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Planning Poker room service")
    parser.add_argument("--host", default=HOST, help="Interface to bind (default: %(default)s)")
    parser.add_argument("--port", type=int, default=PORT, help="Port to listen on (default: %(default)s)")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("pokerroom.transport.http.main:app", host=args.host, port=args.port, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
