"""Shared data type definitions (FileMetadata and its stored record format)."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


def _integer_field(record: Dict[str, Any], name: str) -> int:
    value = record[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class FileMetadata:
    """
    Descriptor of an uploaded file: chunk layout and integrity digest.
    """
    file_name: str
    total_chunks: int
    chunk_size: int
    total_size: int
    checksum: str
    created_at: datetime

    def to_record(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "totalChunks": self.total_chunks,
            "chunkSize": self.chunk_size,
            "totalSize": self.total_size,
            "checksum": self.checksum,
            "createdAt": self.created_at.isoformat(),
        }

    def serialize(self) -> str:
        """Serialize to the JSON text stored under the metadata key."""
        return json.dumps(self.to_record(), sort_keys=True)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "FileMetadata":
        """
        Build metadata from a decoded record.

        Args:
            record: Mapping with camelCase field names

        Returns:
            FileMetadata instance

        Raises:
            KeyError: If a field is missing
            ValueError: If a field cannot be converted
            TypeError: If a field has an unusable type
        """
        return cls(
            file_name=str(record["fileName"]),
            total_chunks=_integer_field(record, "totalChunks"),
            chunk_size=_integer_field(record, "chunkSize"),
            total_size=_integer_field(record, "totalSize"),
            checksum=str(record["checksum"]),
            created_at=datetime.fromisoformat(record["createdAt"]),
        )

    @classmethod
    def deserialize(cls, raw: str) -> "FileMetadata":
        record = json.loads(raw)
        if not isinstance(record, dict):
            raise ValueError("Metadata record must be a JSON object")
        return cls.from_record(record)
