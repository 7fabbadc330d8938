"""Production runner for the hotel operations server.

Usage: python3 hotelops.py [--host HOST] [--port PORT] [--config PATH]

The store backend is taken from the environment (HOTELOPS_STORE_BACKEND
and friends) unless the server config file carries a `store:` block.
"""
import argparse
import os
import sys
from pathlib import Path

from hotelops_lib.config.config import DEFAULT_SERVER_CONFIG
from hotelops_lib.main import Config, create_app


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Hotel operations dashboard server")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--config", type=Path, default=DEFAULT_SERVER_CONFIG, help="Path to the YAML server config")
    return p


def main(argv=None) -> int:
    args = get_parser().parse_args(argv)
    app = create_app(Config(
        admin_token=os.environ.get('HOTELOPS_ADMIN_TOKEN') or None,
        server_config_path=args.config,
    ))

    import uvicorn
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
