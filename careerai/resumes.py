"""Resume upload and retrieval."""
from __future__ import annotations

from pathlib import PurePath

from careerai.config import Settings
from careerai.discovery import DiscoveryService
from careerai.llm import LlmClient
from careerai.log import get_logger
from careerai.models import RequestError, ResumeRecord
from careerai.resume_parser import SUPPORTED_EXTENSIONS, ResumeParseError, analyze_resume, extract_text
from careerai.store.base import DataStore

log = get_logger(__name__)


class ResumeService:
    def __init__(
        self,
        store: DataStore,
        client: LlmClient | None = None,
        discovery: DiscoveryService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self.discovery = discovery
        self.settings = settings or Settings()

    def _validate(self, file_name: str, data: bytes) -> None:
        suffix = PurePath(file_name or "").suffix.lower()
        if suffix not in SUPPORTED_EXTENSIONS:
            raise ResumeParseError(f"Only {', '.join(SUPPORTED_EXTENSIONS)} files are supported")
        if not data:
            raise ResumeParseError("No file provided")
        if len(data) > self.settings.max_upload_bytes:
            raise ResumeParseError(f"File size exceeds {self.settings.max_upload_mb}MB limit")

    def upload(self, user_id: str | None, file_name: str, data: bytes) -> ResumeRecord:
        """Parse and store a resume, then kick off discovery in the background.

        Returns as soon as the resume is stored; the discovery outcome is only
        logged.
        """
        if not user_id:
            raise RequestError("User ID required")
        self._validate(file_name, data)

        log.info("Processing resume %s for %s (%d bytes)", file_name, user_id, len(data))
        analysis = analyze_resume(extract_text(data, file_name), self.client)
        record = ResumeRecord(user_id=user_id, file_name=file_name, analysis=analysis)

        self.store.save_resume(record)
        self.store.add_activity(user_id, "Uploaded resume", file_name)

        if self.discovery is not None:
            self.discovery.spawn_background_discovery(user_id)
        return record

    def get(self, user_id: str | None) -> ResumeRecord | None:
        if not user_id:
            raise RequestError("User ID required")
        return self.store.get_resume(user_id)
