"""Business rules for media uploads and the media library."""

import base64
import binascii
import re
from collections import Counter
from pathlib import PurePath

import structlog

from cosmic_mcp.errors import ValidationError
from cosmic_mcp.models import CosmicMedia, MediaList, MediaStats, OptimizationResult
from cosmic_mcp.repositories import MediaRepository
from cosmic_mcp.utils.rate_limiter import RateLimiter
from cosmic_mcp.validation import ListMediaInput, UpdateMediaInput, UploadMediaInput

logger = structlog.get_logger()

MB = 1024 * 1024
MAX_FILE_SIZE = 50 * MB
MAX_FILENAME_LENGTH = 255
FILENAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+\.[a-zA-Z0-9]+$")
DEFAULT_MIME_TYPE = "application/octet-stream"

ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "video/mp4",
    "video/webm",
    "audio/mp3",
    "audio/wav",
    "application/pdf",
    "text/plain",
    "text/csv",
    "application/json",
)

# MIME type is taken from the extension only; content is never inspected
EXTENSION_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mp3": "audio/mp3",
    "wav": "audio/wav",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "csv": "text/csv",
    "json": "application/json",
}


def mime_type_for(filename: str) -> str:
    extension = PurePath(filename).suffix.lstrip(".").lower()
    return EXTENSION_MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


def sanitize_folder(folder: str) -> str:
    """Keep letters, digits, `/`, `_` and `-`; collapse and trim slashes."""
    folder = re.sub(r"[^a-zA-Z0-9/_-]", "", folder.strip())
    folder = re.sub(r"/+", "/", folder)
    return folder.strip("/")


def alt_text_from_filename(filename: str) -> str:
    """'hero_imageLarge.png' -> 'hero image large'."""
    stem = re.sub(r"\.[^.]+$", "", filename)
    text = re.sub(r"[_-]", " ", stem)
    text = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    return text.lower().strip()


def file_type_category(mime_type: str) -> str:
    if mime_type.startswith(("image/", "video/", "audio/")):
        return mime_type.split("/", 1)[0]
    if mime_type == "application/pdf":
        return "document"
    if mime_type.startswith("text/"):
        return "text"
    return "other"


def compact_base64(file_data: str) -> str:
    """Drop the line breaks and spaces that MIME-wrapped base64 carries."""
    return "".join(file_data.split())


def decode_file_data(file_data: str) -> bytes:
    """Decode a base64 payload, wrapped or not.

    Raises:
        ValidationError: the payload is blank or not valid base64
    """
    if not file_data or not file_data.strip():
        raise ValidationError("File data is required")
    try:
        return base64.b64decode(compact_base64(file_data), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Invalid base64 file data") from e


def check_filename(filename: str) -> None:
    if not filename or not filename.strip():
        raise ValidationError("Filename is required")
    if not FILENAME_PATTERN.match(filename):
        raise ValidationError("Invalid filename format", {"filename": filename})
    if len(filename) > MAX_FILENAME_LENGTH:
        raise ValidationError(
            f"Filename is too long (max {MAX_FILENAME_LENGTH} characters)",
            {"filename": filename},
        )


class MediaService:
    """Validates uploads and forwards media operations."""

    def __init__(self, media: MediaRepository, rate_limiter: RateLimiter):
        self.media = media
        self.rate_limiter = rate_limiter

    async def list_media(self, params: ListMediaInput) -> MediaList:
        logger.info("list_media", folder=params.folder, limit=params.limit)
        self.rate_limiter.check_and_consume("list_media")
        return await self.media.find_many(params)

    async def get_media(self, media_id: str) -> CosmicMedia:
        logger.info("get_media", id=media_id)
        self.rate_limiter.check_and_consume("get_media")
        return await self.media.find_one(media_id)

    async def upload_media(self, data: UploadMediaInput) -> CosmicMedia:
        """Validate and upload a base64 file.

        Checks run in order: payload, filename, size, MIME allow-list. The
        folder is sanitized and alt text is derived from the filename when
        not given.

        Raises:
            ValidationError: any check fails
        """
        logger.info("upload_media", filename=data.filename, folder=data.folder)
        self.rate_limiter.check_and_consume("upload_media")

        payload = decode_file_data(data.file_data)
        check_filename(data.filename)

        if len(payload) > MAX_FILE_SIZE:
            raise ValidationError(
                f"File size ({round(len(payload) / MB)}MB) exceeds maximum allowed size "
                f"({round(MAX_FILE_SIZE / MB)}MB)",
                {"size": len(payload), "max_size": MAX_FILE_SIZE},
            )

        content_type = mime_type_for(data.filename)
        if content_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                f"File type '{content_type}' is not allowed. "
                f"Allowed types: {', '.join(ALLOWED_MIME_TYPES)}",
                {"filename": data.filename, "type": content_type},
            )

        folder = sanitize_folder(data.folder) if data.folder else None
        upload = data.model_copy(
            update={
                "file_data": compact_base64(data.file_data),
                "folder": folder or None,
                "alt_text": data.alt_text or alt_text_from_filename(data.filename),
            }
        )

        media = await self.media.create(upload, content_type)
        logger.info("media_uploaded", id=media.id, name=media.name, size=len(payload))
        return media

    async def update_media(self, data: UpdateMediaInput) -> CosmicMedia:
        logger.info("update_media", id=data.id)
        self.rate_limiter.check_and_consume("update_media")

        await self.media.find_one(data.id)
        return await self.media.update(data)

    async def delete_media(self, media_id: str) -> None:
        logger.info("delete_media", id=media_id)
        self.rate_limiter.check_and_consume("delete_media")

        media = await self.media.find_one(media_id)
        logger.info(
            "media_deletion_audit",
            id=media.id,
            name=media.name,
            size=media.size,
            type=media.type,
        )
        await self.media.delete(media_id)

    async def get_media_stats(self) -> MediaStats:
        """Totals and breakdowns by file category and folder."""
        self.rate_limiter.check_and_consume("get_stats")

        library = await self.media.get_media_stats()
        items = library.media
        total_size = sum(item.size for item in items)

        stats = MediaStats(
            total_count=len(items),
            total_size=total_size,
            average_size=round(total_size / len(items)) if items else 0,
            media_by_type=dict(Counter(file_type_category(item.type) for item in items)),
            media_by_folder=dict(Counter(item.folder or "root" for item in items)),
        )
        logger.info("media_stats_calculated", total_count=stats.total_count)
        return stats

    async def get_media_by_folder(self, folder: str) -> MediaList:
        """List one folder. A name that sanitizes to nothing is rejected."""
        logger.info("get_media_by_folder", folder=folder)
        self.rate_limiter.check_and_consume("get_media_folder")

        clean = sanitize_folder(folder)
        if not clean:
            raise ValidationError(
                "Folder is required and must contain a letter, digit, '_' or '-'",
                {"folder": folder},
            )
        return await self.media.get_media_by_folder(clean)

    async def optimize_media(self, media_id: str) -> OptimizationResult:
        """Report a simulated 20% size reduction. The asset is not changed."""
        logger.info("optimize_media", id=media_id)
        self.rate_limiter.check_and_consume("optimize_media")

        media = await self.media.find_one(media_id)
        optimized_size = round(media.size * 0.8)
        ratio = (media.size - optimized_size) / media.size if media.size else 0.0

        return OptimizationResult(
            original_size=media.size,
            optimized_size=optimized_size,
            compression_ratio=ratio,
        )
