"""
Run the API server.

Usage:
    python -m stock_api [--host 0.0.0.0] [--port 8000] [--config-id default]
"""

import argparse
import sys

import uvicorn

from stock_api.app import create_app
from stock_config import get_active_config


def main() -> int:
    parser = argparse.ArgumentParser(description="Stock service HTTP API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--config-id", default="default")
    args = parser.parse_args()

    app = create_app(get_active_config(config_id=args.config_id))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
