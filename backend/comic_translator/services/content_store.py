"""Content-addressable storage for uploaded page images"""
from pathlib import Path
from typing import Iterator, Optional, Tuple
import logging
import re

from ..errors import NotFoundError, ValidationError
from ..models.response import StoredContent
from ..utils.helpers import generate_file_hash, get_file_extension

logger = logging.getLogger(__name__)

_STORED_NAME_RE = re.compile(r"^(?P<digest>[0-9a-f]{64})(?P<extension>\.[a-z0-9]+)?$")


class ContentStore:
    """Append-only store keyed by the SHA-256 digest of the file bytes"""

    def __init__(self, directory: Path):
        """
        Initialize content store

        Args:
            directory: Folder holding ``<digest><ext>`` files
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def put(self, data: bytes, original_filename: str, extension: Optional[str] = None) -> StoredContent:
        """
        Store bytes unless identical content is already present

        Args:
            data: Raw file bytes
            original_filename: Name supplied by the uploader
            extension: Stored extension; defaults to the lowercased extension of ``original_filename``

        Returns:
            StoredContent with ``already_existed`` set when nothing was written
        """
        digest = generate_file_hash(data)
        if extension is None:
            extension = get_file_extension(original_filename)
        stored_name = f"{digest}{extension.lower()}"
        path = self.directory / stored_name

        already_existed = path.exists()
        if already_existed:
            logger.info(f"File already exists, reusing: {stored_name}")
        else:
            path.write_bytes(data)
            logger.info(f"Stored new file: {stored_name} ({len(data)} bytes)")

        return StoredContent(
            digest=digest,
            stored_name=stored_name,
            original_name=original_filename,
            size=len(data),
            already_existed=already_existed
        )

    def get(self, digest: str, extension: str = "") -> bytes:
        """
        Read stored bytes

        Raises:
            NotFoundError: when no file exists for the digest and extension
        """
        stored_name = f"{digest}{extension}"
        self.resolve(stored_name)
        path = self.directory / stored_name
        if not path.is_file():
            raise NotFoundError(f"File not found: {stored_name}", key=stored_name)
        return path.read_bytes()

    @staticmethod
    def resolve(stored_name: str) -> Tuple[str, str]:
        """
        Split a stored filename into (digest, extension)

        Raises:
            ValidationError: when the name is not ``<sha256 hex>[.ext]``
        """
        match = _STORED_NAME_RE.match(stored_name or "")
        if not match:
            raise ValidationError(f"Invalid stored filename: {stored_name}")
        return match.group("digest"), match.group("extension") or ""

    def list_files(self) -> Iterator[Path]:
        for path in sorted(self.directory.iterdir()):
            if path.is_file():
                yield path

    def list_digests(self) -> Iterator[Tuple[str, str]]:
        """Yield (digest, stored_name) for every content-addressed file"""
        for path in self.list_files():
            match = _STORED_NAME_RE.match(path.name)
            if match:
                yield match.group("digest"), path.name
