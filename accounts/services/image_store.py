import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from accounts.config import settings
from accounts.errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ImageUpload:
    filename: str | None
    content_type: str | None
    data: bytes


class ImageStore(Protocol):
    def save(self, upload: ImageUpload) -> str: ...

    def delete(self, ref: str) -> None: ...


def validate_image(upload: ImageUpload) -> None:
    if not (upload.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed!", code="InvalidImage")
    if not upload.data:
        raise ValidationError("Empty file upload", code="InvalidImage")


def build_filename(upload: ImageUpload) -> str:
    """Millisecond timestamp plus the original extension."""
    extension = Path(upload.filename or "").suffix.lower()
    return f"{int(time.time() * 1000)}{extension}"


def _join_path(*segments: str) -> str:
    cleaned = [segment.strip("/") for segment in segments if segment and segment.strip("/")]
    return "/".join(cleaned)


class LocalImageStore:
    def __init__(self, upload_dir: str | Path = settings.UPLOAD_DIR):
        self.upload_dir = Path(upload_dir)

    def save(self, upload: ImageUpload) -> str:
        validate_image(upload)
        file_path = self.upload_dir / build_filename(upload)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(upload.data)
        except OSError as exc:
            logger.exception("Could not write profile photo to %s", file_path)
            raise PersistenceError("Could not store profile photo") from exc
        logger.info("Stored profile photo at %s", file_path)
        return file_path.as_posix()

    def delete(self, ref: str) -> None:
        try:
            Path(ref).unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove profile photo %s", ref)


class SpacesImageStore:
    """Uploads photos to a DigitalOcean Spaces (S3 compatible) bucket."""

    def __init__(self, client=None, bucket: str | None = None, cdn_url: str | None = None, base_path: str | None = None):
        self.client = client or boto3.session.Session().client(
            "s3",
            region_name=settings.SPACES_REGION,
            endpoint_url=settings.SPACES_ENDPOINT,
            aws_access_key_id=settings.SPACES_KEY,
            aws_secret_access_key=settings.SPACES_SECRET,
        )
        self.bucket = bucket or settings.SPACES_NAME
        self.cdn_url = (cdn_url or settings.SPACES_CDN_URL or "").rstrip("/")
        self.base_path = settings.SPACES_BASE_PATH if base_path is None else base_path

    def save(self, upload: ImageUpload) -> str:
        validate_image(upload)
        key = _join_path(self.base_path, build_filename(upload))
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=upload.data,
                ACL="public-read",
                ContentType=upload.content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Could not upload profile photo to %s/%s", self.bucket, key)
            raise PersistenceError("Could not store profile photo") from exc
        logger.info("Uploaded profile photo to %s/%s", self.bucket, key)
        return f"{self.cdn_url}/{key}"

    def delete(self, ref: str) -> None:
        key = ref[len(self.cdn_url):].lstrip("/") if ref.startswith(self.cdn_url) else ref
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.warning("Could not remove profile photo %s/%s", self.bucket, key)


def create_image_store() -> ImageStore:
    if settings.IMAGE_STORE_BACKEND == "spaces":
        return SpacesImageStore()
    return LocalImageStore()


image_store = create_image_store()
