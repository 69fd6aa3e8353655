"""Media upload helpers."""

import logging
import mimetypes
from pathlib import Path

from surfapp.adapters.api_client import ApiClient
from surfapp.domain.errors import ValidationError

_logger = logging.getLogger(__name__)

VALID_MEDIA_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "video/mp4",
        "video/quicktime",
    }
)
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


async def upload_media(
    client: ApiClient,
    session_id: str,
    path: Path,
    content_type: str | None = None,
) -> str:
    """Upload a local file through the presigned URL flow.

    Requests an upload URL, PUTs the bytes directly to storage and returns
    the id of the created media record.
    """
    resolved_type = content_type or mimetypes.guess_type(path.name)[0] or ""
    if not is_valid_media_type(resolved_type):
        raise ValidationError(
            "Unsupported media type", details={"content_type": resolved_type}
        )
    presigned = await client.get_presigned_upload_url(
        session_id, path.name, resolved_type
    )
    content = path.read_bytes()
    await client.upload_file(presigned.upload_url, content, resolved_type)
    _logger.info(
        "Uploaded media: session=%s media=%s size=%s",
        session_id,
        presigned.media_id,
        format_file_size(len(content)),
    )
    return presigned.media_id


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for display."""
    if size_bytes <= 0:
        return "0 Bytes"
    index = 0
    value = float(size_bytes)
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[index]}"


def is_valid_media_type(content_type: str) -> bool:
    return content_type.lower() in VALID_MEDIA_TYPES


def get_file_extension(filename: str) -> str:
    """Return the lowercase extension without the dot."""
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()
