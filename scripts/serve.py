#!/usr/bin/env python3
"""
WealthDesk — Launch the API server.
Usage: python scripts/serve.py [--port 8000] [--database-url sqlite:///wealthdesk.db]
"""
import os
import sys
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main():
    parser = argparse.ArgumentParser(description="Serve WealthDesk")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    parser.add_argument("--no-seed", action="store_true", help="Start without the demo client book")
    args = parser.parse_args()

    # Settings are read from the environment when the factory runs
    if args.database_url is not None:
        os.environ["DATABASE_URL"] = args.database_url
    if args.no_seed:
        os.environ["SEED_DEMO_DATA"] = "false"

    import uvicorn
    uvicorn.run(
        "src.app.server:build_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
