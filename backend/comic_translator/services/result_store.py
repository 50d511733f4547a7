"""Per-session cache of analysis results"""
from pathlib import Path
from typing import Iterator, Optional, Tuple
import json
import logging
import re

from ..errors import ValidationError
from ..models.analysis import AnalysisResult
from ..utils.helpers import utc_now

logger = logging.getLogger(__name__)

_KEY_PART_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


class ResultStore:
    """One JSON document per (session id, content digest) pair"""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str, content_digest: str) -> Path:
        if not _KEY_PART_RE.match(session_id or "") or not _KEY_PART_RE.match(content_digest or ""):
            raise ValidationError(f"Invalid result key: {session_id}/{content_digest}")
        return self.directory / f"{session_id}-{content_digest}.json"

    def save(self, content_digest: str, session_id: str, result: AnalysisResult) -> Path:
        """
        Persist a result, replacing any earlier one for the same pair

        Args:
            content_digest: Digest of the analyzed image
            session_id: Session the analysis was requested for
            result: Validated analysis result

        Returns:
            Path of the written document
        """
        path = self._path(session_id, content_digest)
        envelope = {
            "content_digest": content_digest,
            "session_id": session_id,
            "processed_at": utc_now().isoformat(),
            "result": result.model_dump(mode="json"),
        }
        path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info(f"Stored result {path.name}")
        return path

    def load(self, session_id: str, content_digest: str) -> Optional[AnalysisResult]:
        """Cached result for the pair, or None when absent"""
        path = self._path(session_id, content_digest)
        if not path.is_file():
            return None
        envelope = json.loads(path.read_text(encoding="utf-8"))
        return AnalysisResult.model_validate(envelope["result"])

    def list_entries(self) -> Iterator[Tuple[str, str, Path]]:
        """Yield (session_id, content_digest, path) for every stored result"""
        for path in sorted(self.directory.glob("*.json")):
            session_id, _, digest = path.stem.rpartition("-")
            if session_id and _DIGEST_RE.match(digest):
                yield session_id, digest, path
