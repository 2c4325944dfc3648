"""
Run the analytics API locally.

Usage:
    python -m rusunawa_analytics [--host 0.0.0.0] [--port 8000] [--reload]

Reads backend/.env (or ./.env) before settings are built, so LOG_LEVEL,
API_BASE_URL and API_TOKEN can be kept out of the shell environment.
"""
import argparse
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parent.parent


def main():
    parser = argparse.ArgumentParser(description="Rusunawa analytics API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    load_dotenv(BACKEND_DIR / ".env")
    load_dotenv()

    uvicorn.run("rusunawa_analytics.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
