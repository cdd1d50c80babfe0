from .base import JobSearchBase
from .mock import MockSource
from .serpapi import SerpApiSource

from careerai.config import Settings
from careerai.log import get_logger

log = get_logger(__name__)

__all__ = ["JobSearchBase", "MockSource", "SerpApiSource", "get_source"]


def get_source(settings: Settings) -> JobSearchBase:
    if settings.has_search_key:
        log.info("Registered source: SerpAPI (Google Jobs)")
        return SerpApiSource(settings.serpapi_key, fallback=MockSource())

    log.info("No SERPAPI_KEY found — using MockSource")
    return MockSource()
