"""Helper utility functions"""
import uuid
from datetime import datetime, timezone
from pathlib import Path
import re
import hashlib


_FILENAME_UNSAFE_RE = re.compile(r"[^\w.\- #]+")


def generate_file_hash(data: bytes) -> str:
    """
    Generate SHA-256 hash of file content for deduplication

    Args:
        data: Raw file bytes

    Returns:
        Hexadecimal hash string
    """
    return hashlib.sha256(data).hexdigest()


def generate_session_id() -> str:
    """Generate unique session ID"""
    return str(uuid.uuid4())


def generate_page_id() -> str:
    """Generate unique page ID"""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Timezone-aware current time"""
    return datetime.now(timezone.utc)


def get_file_extension(filename: str) -> str:
    """Lowercased extension including the dot, or an empty string"""
    return Path(filename or "").suffix.lower()



def format_bytes(size: int) -> str:
    """Format byte counts as a human readable string"""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def export_timestamp(moment: datetime) -> str:
    """ISO timestamp safe for filenames (no colons or dots)"""
    return re.sub(r"[:.]", "-", moment.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]) + "Z"


def safe_filename_part(text: str) -> str:
    """Make free text usable inside a filename"""
    return _FILENAME_UNSAFE_RE.sub("_", text).strip(" ._") or "untitled"
