"""Render sessions into downloadable documents"""
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging

from ..errors import NotFoundError, UnsupportedFormatError
from ..models.analysis import AnalysisResult
from ..models.response import ExportResult
from ..models.session import Session
from ..utils.helpers import export_timestamp, safe_filename_part, utc_now
from .result_store import ResultStore
from .session_store import SessionStore

logger = logging.getLogger(__name__)

_TYPE_LABELS = {
    "speech_bubble": "Speech",
    "thought_bubble": "Thought",
    "narration": "Narration",
    "sound_effect": "Sound effect",
    "sign_text": "Sign",
    "other": "Text",
}


class ExportFormat(str, Enum):
    """Supported export document formats"""
    JSON = "json"
    TEXT = "text"
    MARKDOWN = "markdown"

    @classmethod
    def parse(cls, tag: Optional[str]) -> "ExportFormat":
        tag = (tag or "").strip().lower()
        tag = {"txt": "text", "md": "markdown"}.get(tag, tag)
        try:
            return cls(tag)
        except ValueError:
            raise UnsupportedFormatError(f"Unsupported export format: {tag}") from None

    @property
    def extension(self) -> str:
        return {"json": "json", "text": "txt", "markdown": "md"}[self.value]


def _format_time(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


class SessionExporter:
    """Combine a session with its cached results and render it"""

    def __init__(self, session_store: SessionStore, result_store: ResultStore, directory: Path):
        """
        Initialize session exporter

        Args:
            session_store: Source of session documents
            result_store: Source of full analysis results
            directory: Exports area where rendered documents are written
        """
        self.session_store = session_store
        self.result_store = result_store
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def export(self, session_id: str, format: str = "json") -> ExportResult:
        """
        Render a session and write the document to the exports area

        Args:
            session_id: Session to export
            format: ``json``, ``text`` or ``markdown`` (``txt``/``md`` accepted)

        Returns:
            ExportResult with the rendered content

        Raises:
            UnsupportedFormatError: unknown format tag
            NotFoundError: session does not exist
        """
        export_format = ExportFormat.parse(format)
        session = self.session_store.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found", key=session_id)

        pages = self._collect_pages(session)
        if export_format == ExportFormat.JSON:
            content = json.dumps(
                {"session": session.model_dump(mode="json"), "pages": pages},
                indent=2,
                ensure_ascii=False
            )
        elif export_format == ExportFormat.TEXT:
            content = self._render_text(session, pages)
        else:
            content = self._render_markdown(session, pages)

        filename = (
            f"session-{safe_filename_part(session.name)}-"
            f"{export_timestamp(utc_now())}.{export_format.extension}"
        )
        path = self.directory / filename
        path.write_text(content, encoding="utf-8")
        size = len(content.encode("utf-8"))
        logger.info(f"Exported session {session_id} as {export_format.value} ({size} bytes)")

        return ExportResult(filename=filename, content=content, size=size, path=str(path))

    def _collect_pages(self, session: Session) -> List[Dict[str, Any]]:
        pages = []
        for page in session.pages:
            entry = page.model_dump(mode="json")
            if page.result is not None:
                result = self.result_store.load(session.id, page.content_digest)
                if result is None:
                    logger.warning(f"Result missing for page {page.id} in session {session.id}")
                entry["full_result"] = result.model_dump(mode="json") if result else None
            pages.append(entry)
        return pages

    @staticmethod
    def _units(page: Dict[str, Any]) -> List[Dict[str, Any]]:
        full_result = page.get("full_result")
        if not full_result:
            return []
        return AnalysisResult.model_validate(full_result).model_dump(mode="json")["reading_order"]

    def _header_lines(self, session: Session) -> List[str]:
        lines = [
            f"Created: {_format_time(session.created_at)}",
            f"Updated: {_format_time(session.updated_at)}",
        ]
        if session.description:
            lines.append(f"Description: {session.description}")
        lines.append(
            f"Pages: {session.metadata.total_pages} ({session.metadata.completed_pages} completed)"
        )
        return lines

    def _render_text(self, session: Session, pages: List[Dict[str, Any]]) -> str:
        lines = [f"Session: {session.name}"] + self._header_lines(session) + [""]

        for index, page in enumerate(pages, start=1):
            lines.append(f"=== Page {index}: {page['original_name']} ===")
            for unit in self._units(page):
                speaker = f" [{unit['character']}]" if unit.get("character") else ""
                lines.append(
                    f"{unit['sequence']}. ({_TYPE_LABELS[unit['type']]}){speaker} {unit['original_text']}"
                )
                lines.append(f"   Chinese: {unit['chinese_translation']}")
                if unit["explanations"]:
                    lines.append("   Explanations:")
                    for explanation in unit["explanations"]:
                        lines.append(f"   - {explanation['phrase']}: {explanation['meaning']}")
                lines.append("")
            lines.append("")

        return "\n".join(lines) + "\n"

    def _render_markdown(self, session: Session, pages: List[Dict[str, Any]]) -> str:
        header = self._header_lines(session)
        lines = [f"# {session.name}", ""]
        for line in header[:-1]:
            label, _, value = line.partition(": ")
            lines.append(f"**{label}:** {value}  ")
        label, _, value = header[-1].partition(": ")
        lines += [f"**{label}:** {value}", ""]

        for index, page in enumerate(pages, start=1):
            lines += [f"## Page {index}: {page['original_name']}", ""]
            for unit in self._units(page):
                lines.append(f"### {unit['sequence']}. {_TYPE_LABELS[unit['type']]}")
                if unit.get("character"):
                    lines.append(f"*{unit['character']}*")
                lines += [
                    "",
                    f"**Original:** {unit['original_text']}",
                    "",
                    f"**Chinese Translation:** {unit['chinese_translation']}",
                    "",
                ]
                if unit["explanations"]:
                    lines.append("**Explanations:**")
                    for explanation in unit["explanations"]:
                        context = f" ({explanation['context']})" if explanation["context"] else ""
                        lines.append(f"- **{explanation['phrase']}:** {explanation['meaning']}{context}")
                    lines.append("")
            lines += ["---", ""]

        return "\n".join(lines) + "\n"
