# manuorder/files/validation.py

import os
from typing import Optional, Tuple

from ..core.config import settings
from ..core.exceptions import ValidationError

ALLOWED_CONTENT_TYPES = frozenset({
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "application/dwg",
    "application/step",
    "application/stp",
    "application/iges",
    "application/igs",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

# CAD formats browsers rarely label; accepted by extension when the type is missing or generic.
CAD_EXTENSIONS = frozenset({".dwg", ".step", ".stp", ".iges", ".igs"})
GENERIC_CONTENT_TYPES = frozenset({"", "application/octet-stream"})
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def safe_file_name(file_name: Optional[str]) -> str:
    """Reduce a client-supplied name to its base name."""
    name = (file_name or "").replace("\\", "/").split("/")[-1].strip()
    if name in ("", ".", ".."):
        raise ValidationError("A file name is required")
    return name


def validate_upload(
    file_name: Optional[str],
    content_type: Optional[str],
    size: int,
    max_bytes: Optional[int] = None,
) -> Tuple[str, str]:
    """
    Check an upload before it goes anywhere near a blob store.

    Returns the cleaned base name and the content type to store it under.
    """
    max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    name = safe_file_name(file_name)

    if size <= 0:
        raise ValidationError("The uploaded file is empty")
    if size > max_bytes:
        raise ValidationError(
            f"File size too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
            context={"file_name": name, "file_size": size},
        )

    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type in ALLOWED_CONTENT_TYPES:
        return name, content_type

    extension = os.path.splitext(name)[1].lower()
    if content_type in GENERIC_CONTENT_TYPES and extension in CAD_EXTENSIONS:
        return name, content_type or DEFAULT_CONTENT_TYPE

    raise ValidationError(
        "File type not supported",
        context={"file_name": name, "content_type": content_type or "unknown"},
    )
