#!/usr/bin/env python3
"""Serve the CareerAI API with uvicorn."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import uvicorn

from careerai.config import get_env

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the CareerAI HTTP API.")
    parser.add_argument("--host", default=get_env("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(get_env("PORT", "8000")))
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    uvicorn.run("careerai.api:create_app", factory=True, host=args.host, port=args.port, reload=args.reload)
