"""Secure image handling utilities for complaint photos."""
import base64
import io
import os
from dataclasses import dataclass
from typing import Tuple

from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}
DEFAULT_MAX_IMAGE_BYTES = 8 * 1024 * 1024  # 8 MB

# Pillow format names for the allowed extensions.
_PIL_FORMATS = {"JPEG": "jpeg", "PNG": "png", "WEBP": "webp"}


def _fail_if(condition: bool, message: str) -> None:
    if condition:
        raise ValueError(message)


def _get_mime_type(ext: str) -> str:
    mapping = {
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "png": "image/png",
        "webp": "image/webp",
    }
    return mapping.get(ext, "application/octet-stream")


def to_data_url(content: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(content).decode()}"


@dataclass(frozen=True)
class Attachment:
    """An uploaded photo held in memory for the duration of one submission."""

    filename: str
    content_type: str
    data: bytes

    @property
    def preview_data_url(self) -> str:
        return to_data_url(self.data, self.content_type)

    def __bool__(self) -> bool:
        return bool(self.data)


def _sniff_format(content: bytes) -> str | None:
    try:
        with Image.open(io.BytesIO(content)) as img:
            detected = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ValueError("Image validation failed") from exc
    return _PIL_FORMATS.get(detected or "")


def validate_image_file(file: FileStorage, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> Tuple[bytes, str]:
    _fail_if(not file, "No file provided")
    filename = secure_filename(file.filename or "")
    _fail_if(not filename or "." not in filename, "Unsupported file name")
    ext = filename.rsplit(".", 1)[1].lower()
    _fail_if(ext not in ALLOWED_IMAGE_EXTENSIONS, "File type not allowed")

    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    _fail_if(size == 0, "Empty file")
    _fail_if(size > max_bytes, "File exceeds size limits")

    content = file.read()
    _fail_if(len(content) > max_bytes, "File exceeds size limits")
    sniffed = _sniff_format(content)
    _fail_if(sniffed not in ALLOWED_IMAGE_EXTENSIONS, "Invalid image data")

    file.stream.seek(0)
    return content, ext


def read_attachment(file: FileStorage | None, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> Attachment | None:
    """Validate an uploaded photo and materialize it; returns None when nothing was uploaded."""
    if file is None or not file.filename:
        return None
    content, ext = validate_image_file(file, max_bytes=max_bytes)
    return Attachment(filename=file.filename, content_type=_get_mime_type(ext), data=content)


def attachment_object_name(original_name: str, epoch_millis: int) -> str:
    safe_name = secure_filename(original_name or "") or "photo"
    return f"{epoch_millis}-{safe_name}"
