#!/usr/bin/env python3
"""Run one job discovery pass for a user from the command line."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from careerai.log import get_logger

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discover and rank jobs for a user's resume.")
    parser.add_argument("--user", required=True, help="user id whose resume drives the search")
    parser.add_argument("--location", default=None, help="search location (default from settings)")
    parser.add_argument("--limit", type=int, default=None, help="max postings to fetch")
    parser.add_argument("--resume", type=Path, default=None, help="PDF/DOCX/TXT to upload before searching")
    parser.add_argument("--snapshot", action="store_true", help="also write a JSON snapshot under data/")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from careerai.config import load_settings
    from careerai.discovery import DiscoveryService, MissingResumeError
    from careerai.llm import LlmClient
    from careerai.matcher import JobMatcher, MatcherError
    from careerai.resume_parser import ResumeParseError
    from careerai.resumes import ResumeService
    from careerai.snapshot import write_jobs_snapshot
    from careerai.sources import get_source
    from careerai.store import get_store

    settings = load_settings()
    store = get_store(settings)
    client = LlmClient.from_settings(settings)
    discovery = DiscoveryService(store, get_source(settings), JobMatcher(client), settings)

    try:
        if args.resume is not None:
            ResumeService(store, client, None, settings).upload(args.user, args.resume.name, args.resume.read_bytes())
        result = discovery.discover_jobs(args.user, args.location, args.limit)
    except (MissingResumeError, ResumeParseError, MatcherError, OSError) as exc:
        log.error("Discovery failed: %s", exc)
        return 1
    finally:
        discovery.shutdown()

    if result.message:
        log.info(result.message)
        return 0

    log.info("Ranked %d of %d jobs fetched:", len(result.matches), result.jobs_found)
    for i, m in enumerate(result.matches, 1):
        log.info("  %2d. [%3d] %s @ %s (%s)", i, m.match_score, m.job.title, m.job.company, m.job.location)

    if args.snapshot:
        write_jobs_snapshot(args.user, store.get_resume(args.user), result.matches, settings.data_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
