"""Supporting documents attached to an invoice."""

from __future__ import annotations

import base64
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from einvoice.core.constants import MAX_ATTACHMENT_SIZE, SUPPORTED_MIME_TYPES
from einvoice.models.values import NonBlank, is_not_blank

_MIME_BY_EXTENSION: dict[str, str] = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "xml": "application/xml",
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "xls": "application/vnd.ms-excel",
    "zip": "application/zip",
    "txt": "text/plain",
}


class AttachedDocument(BaseModel):
    """A binary document embedded in the invoice.

    The raw bytes are kept in ``content``; :attr:`base64_content` gives the encoded
    form used in documents.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    filename: NonBlank = Field(description="File name shown to the recipient")
    content: bytes = Field(description="Raw file content")
    mime_type: str = Field(default="application/pdf", description="MIME type")
    description: str | None = Field(default=None, description="Short description")
    document_type: str | None = Field(default=None, description="Document type code")

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        if v.lower() not in SUPPORTED_MIME_TYPES:
            raise ValueError(
                f"Unsupported MIME type {v!r}. "
                f"Supported types: {', '.join(sorted(SUPPORTED_MIME_TYPES))}"
            )
        return v.lower()

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("Attachment content cannot be empty")
        if len(v) > MAX_ATTACHMENT_SIZE:
            raise ValueError(
                f"Attachment size ({len(v)} bytes) exceeds the limit of "
                f"{MAX_ATTACHMENT_SIZE} bytes"
            )
        return v

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        description: str | None = None,
        document_type: str | None = None,
    ) -> AttachedDocument:
        """Load an attachment from disk, guessing the MIME type from the extension.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ValidationError: If the extension maps to no supported type.
        """
        path = Path(path)
        mime_type = _MIME_BY_EXTENSION.get(path.suffix.lower().lstrip("."), "application/octet-stream")
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            mime_type=mime_type,
            description=description,
            document_type=document_type,
        )

    @classmethod
    def from_base64(
        cls,
        filename: str,
        encoded: str,
        mime_type: str = "application/pdf",
        description: str | None = None,
        document_type: str | None = None,
    ) -> AttachedDocument:
        return cls(
            filename=filename,
            content=base64.b64decode(encoded),
            mime_type=mime_type,
            description=description,
            document_type=document_type,
        )

    @property
    def base64_content(self) -> str:
        return base64.b64encode(self.content).decode("ascii")

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def formatted_size(self) -> str:
        """Human-readable size, e.g. ``"1.5 KB"``."""
        size = float(self.size)
        units = ["B", "KB", "MB", "GB"]
        unit = 0
        while size >= 1024 and unit < len(units) - 1:
            size /= 1024
            unit += 1
        return f"{round(size, 2):g} {units[unit]}"

    def save(self, path: str | Path) -> None:
        Path(path).write_bytes(self.content)

    def validate_fields(self) -> list[str]:
        errors: list[str] = []
        if not is_not_blank(self.filename):
            errors.append("Filename is required")
        if self.mime_type not in SUPPORTED_MIME_TYPES:
            errors.append("Unsupported MIME type")
        if not self.content:
            errors.append("Content is empty")
        if self.size > MAX_ATTACHMENT_SIZE:
            errors.append("File too large")
        return errors
