"""
Metadata records for uploaded media, stored as Markdown with YAML frontmatter at {metadata_dir}/{filename}.md.
The frontmatter holds every field except the full transcription, which is the Markdown body.
"""
import logging
import os
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from transcriber.models.schemas import MediaMetadataRecord

logger = logging.getLogger(__name__)

MD_EXT = ".md"

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.S | re.M)


class RecordFormatError(ValueError):
    """Metadata file exists but is not valid frontmatter Markdown."""


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a Markdown document into (frontmatter dict, body). Raises RecordFormatError if the leading --- block is missing or not a YAML mapping."""
    m = _FRONTMATTER_RE.match(text)
    if not m:
        raise RecordFormatError("missing frontmatter block")
    try:
        data = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise RecordFormatError(f"invalid frontmatter YAML: {e}") from e
    if not isinstance(data, dict):
        raise RecordFormatError("frontmatter is not a mapping")
    body = text[m.end():]
    # writer puts one blank line between the closing --- and the body
    if body.startswith("\r\n"):
        body = body[2:]
    elif body.startswith("\n"):
        body = body[1:]
    return data, body


def render_frontmatter(data: Dict[str, Any], body: str) -> str:
    """Inverse of split_frontmatter. None values are dropped from the frontmatter."""
    clean = {k: v for k, v in data.items() if v is not None}
    front = yaml.safe_dump(clean, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{front}---\n\n{body}"


def new_record(filename: str, media_type: str, timestamp: Optional[str] = None) -> MediaMetadataRecord:
    """Initial record as the upload path writes it: nanosecond id, /media/ path, empty labels and transcription."""
    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    return MediaMetadataRecord(
        id=str(time.time_ns()),
        filename=filename,
        path="/media/" + filename,
        type=media_type,
        timestamp=timestamp,
        labels=[],
    )


class MetadataStore:
    """Read/write MediaMetadataRecords by filename. Both the upload endpoint and the integration stage go through this class."""

    def __init__(self, metadata_dir: str):
        self.metadata_dir = metadata_dir

    def path_for(self, filename: str) -> str:
        return os.path.join(self.metadata_dir, filename + MD_EXT)

    def exists(self, filename: str) -> bool:
        return os.path.isfile(self.path_for(filename))

    def load(self, filename: str) -> Optional[MediaMetadataRecord]:
        """Return the record for filename, or None if no file exists. Raises RecordFormatError on unparseable content."""
        path = self.path_for(filename)
        if not os.path.isfile(path):
            return None
        with open(path, encoding="utf-8") as f:
            text = f.read()
        data, body = split_frontmatter(text)
        data["transcription"] = body
        try:
            return MediaMetadataRecord(**data)
        except ValidationError as e:
            raise RecordFormatError(f"invalid metadata record {path}: {e}") from e

    def save(self, record: MediaMetadataRecord) -> None:
        """Write the whole record. Goes through a temp file and os.replace so readers never see a half-written record."""
        os.makedirs(self.metadata_dir, exist_ok=True)
        path = self.path_for(record.filename)
        data = record.model_dump(exclude={"transcription"})
        data["transcripts"] = [s.model_dump(exclude_none=True) for s in record.transcripts]
        if not data["transcripts"]:
            del data["transcripts"]
        content = render_frontmatter(data, record.transcription)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp, path)

    def list_all(self) -> List[MediaMetadataRecord]:
        """All readable records sorted by filename; unreadable ones are logged and skipped."""
        if not os.path.isdir(self.metadata_dir):
            return []
        out: List[MediaMetadataRecord] = []
        for name in sorted(os.listdir(self.metadata_dir)):
            if not name.endswith(MD_EXT):
                continue
            filename = name[: -len(MD_EXT)]
            try:
                record = self.load(filename)
            except (OSError, RecordFormatError) as e:
                logger.warning("Failed to read metadata file %s: %s", name, e)
                continue
            if record is not None:
                out.append(record)
        return out
