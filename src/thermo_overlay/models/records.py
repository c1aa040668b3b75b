from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..config import JPEG_MIME_TYPE, OPTIONAL_READING_KEYS, READING_KEYS
from ..errors import InvalidArgumentError


@dataclass(frozen=True)
class ReadingsRecord:
    """Temperature readings burned into the label box."""

    t1: str
    t2: str
    t3: str
    t4: str
    pt: str = ""

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ReadingsRecord:
        """Build a record from a mapping, requiring every ``t1``..``t4`` key."""
        missing = [key for key in READING_KEYS if key not in values or values[key] is None]
        if missing:
            raise InvalidArgumentError(f"Missing readings: {', '.join(missing)}")
        payload = {key: str(values[key]) for key in READING_KEYS}
        for key in OPTIONAL_READING_KEYS:
            raw = values.get(key)
            payload[key] = "" if raw is None else str(raw)
        return cls(**payload)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def items(self) -> list[tuple[str, str]]:
        """Return ``(key, value)`` pairs to render, in display order.

        Mandatory keys always appear; optional keys only when non-blank.
        """
        pairs = [(key, getattr(self, key).strip()) for key in READING_KEYS]
        for key in OPTIONAL_READING_KEYS:
            value = getattr(self, key).strip()
            if value:
                pairs.append((key, value))
        return pairs


@dataclass(frozen=True)
class CompositedArtifact:
    """Encoded output image plus its pixel dimensions."""

    data: bytes
    width: int
    height: int
    mime_type: str = JPEG_MIME_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ProcessedImage:
    """Original source bytes paired with the rendered artifact."""

    original_bytes: bytes
    artifact: CompositedArtifact


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one item of a batch run."""

    source: Union[Path, bytes]
    processed: Optional[ProcessedImage] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.processed is not None and self.error is None

    @property
    def label(self) -> str:
        if isinstance(self.source, (bytes, bytearray)):
            return f"<{len(self.source)} bytes>"
        return str(self.source)


@dataclass(frozen=True)
class ExperimentRecord:
    """Stored history entry."""

    id: int
    timestamp: int  # epoch milliseconds
    readings: ReadingsRecord
    original_bytes: bytes
    processed_bytes: bytes

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000.0, tz=timezone.utc)
