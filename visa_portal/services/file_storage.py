import logging
import re
import secrets
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from visa_portal.config import settings

logger = logging.getLogger(__name__)

APPOINTMENT_SLIP_FOLDER = "appointment-slips"
ALLOWED_SLIP_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
}


def is_valid_type(mimetype: str | None) -> bool:
    return mimetype in ALLOWED_SLIP_TYPES


def is_valid_size(size: int, max_size: int | None = None) -> bool:
    limit = settings.MAX_UPLOAD_BYTES if max_size is None else max_size
    return 0 <= size <= limit


def format_file_size(size: int) -> str:
    return f"{int(size / 1024 + 0.5)} KB"


def generate_unique_filename(original_name: str, user_id: int, prefix: str = "") -> str:
    """Build a storage name that two uploads for the same user can never share."""
    original = Path(original_name or "upload")
    extension = re.sub(r"[^a-zA-Z0-9.]", "", original.suffix)
    base_name = re.sub(r"[^a-zA-Z0-9]", "_", original.stem) or "file"
    timestamp = int(time.time() * 1000)
    random_part = secrets.token_hex(8)
    prefix_part = f"{prefix}_" if prefix else ""
    return f"{prefix_part}{user_id}_{timestamp}_{random_part}_{base_name}{extension}"


class FileStorage(Protocol):
    def save_appointment_slip(self, content: bytes, filename: str, content_type: str | None = None) -> str: ...

    def delete_file(self, relative_path: str) -> bool: ...

    def file_exists(self, relative_path: str) -> bool: ...

    def get_file_info(self, relative_path: str) -> dict: ...

    def read_file(self, relative_path: str) -> bytes: ...


class LocalFileStorage:
    """Stores slips on the local disk under ``base_dir``; paths are relative to it."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir).resolve()
        self.slips_dir = self.base_dir / APPOINTMENT_SLIP_FOLDER

    def ensure_directories(self) -> None:
        self.slips_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, relative_path: str) -> Path:
        full_path = (self.base_dir / relative_path).resolve()
        if self.base_dir not in full_path.parents:
            raise ValueError(f"Path escapes the upload directory: {relative_path}")
        return full_path

    def save_appointment_slip(self, content: bytes, filename: str, content_type: str | None = None) -> str:
        self.ensure_directories()
        full_path = self._resolve(f"{APPOINTMENT_SLIP_FOLDER}/{filename}")
        # write to a temp name first so a crash never leaves a half-written slip
        temp_path = full_path.with_name(f".{full_path.name}.part")
        try:
            temp_path.write_bytes(content)
            temp_path.replace(full_path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
        relative_path = full_path.relative_to(self.base_dir).as_posix()
        logger.info("Saved appointment slip %s (%s bytes)", relative_path, len(content))
        return relative_path

    def delete_file(self, relative_path: str) -> bool:
        full_path = self._resolve(relative_path)
        if not full_path.exists():
            return False
        full_path.unlink()
        logger.info("Deleted stored file %s", relative_path)
        return True

    def file_exists(self, relative_path: str) -> bool:
        try:
            return self._resolve(relative_path).is_file()
        except ValueError:
            return False

    def get_file_info(self, relative_path: str) -> dict:
        full_path = self._resolve(relative_path)
        stats = full_path.stat()
        return dict(
            filename=full_path.name,
            extension=full_path.suffix,
            size=stats.st_size,
            modified=datetime.utcfromtimestamp(stats.st_mtime),
        )

    def read_file(self, relative_path: str) -> bytes:
        return self._resolve(relative_path).read_bytes()

    def cleanup_old_files(self, days_old: int = 30) -> int:
        if not self.slips_dir.exists():
            return 0
        cutoff = time.time() - timedelta(days=days_old).total_seconds()
        deleted = 0
        for path in self.slips_dir.iterdir():
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink(missing_ok=True)
                deleted += 1
        logger.info("Removed %s stored files older than %s days", deleted, days_old)
        return deleted

    def storage_stats(self) -> dict:
        files = [path for path in self.slips_dir.iterdir() if path.is_file()] if self.slips_dir.exists() else []
        total_size = sum(path.stat().st_size for path in files)
        return {
            "file_count": len(files),
            "total_size": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "average_file_size": round(total_size / len(files)) if files else 0,
        }


class SpacesFileStorage:
    """Stores slips in an S3-compatible bucket (DigitalOcean Spaces)."""

    def __init__(self, client, bucket: str, base_path: str = ""):
        self.client = client
        self.bucket = bucket
        self.base_path = base_path.strip("/")

    @classmethod
    def from_settings(cls, config) -> "SpacesFileStorage":
        session = boto3.session.Session()
        client = session.client(
            "s3",
            region_name=config.SPACES_REGION,
            endpoint_url=config.SPACES_ENDPOINT,
            aws_access_key_id=config.SPACES_KEY,
            aws_secret_access_key=config.SPACES_SECRET,
        )
        return cls(client, config.SPACES_NAME, config.SPACES_BASE_PATH)

    def _key(self, relative_path: str) -> str:
        cleaned = [segment.strip("/") for segment in (self.base_path, relative_path) if segment and segment.strip("/")]
        return "/".join(cleaned)

    def save_appointment_slip(self, content: bytes, filename: str, content_type: str | None = None) -> str:
        relative_path = f"{APPOINTMENT_SLIP_FOLDER}/{filename}"
        extra_args = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=self._key(relative_path), Body=content, **extra_args)
        except (BotoCoreError, ClientError) as exc:
            raise OSError(f"Failed to upload {relative_path}: {exc}") from exc
        logger.info("Uploaded appointment slip %s (%s bytes)", relative_path, len(content))
        return relative_path

    def delete_file(self, relative_path: str) -> bool:
        # S3 deletes are idempotent: deleting a missing key succeeds
        self.client.delete_object(Bucket=self.bucket, Key=self._key(relative_path))
        return True

    def file_exists(self, relative_path: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self._key(relative_path))
            return True
        except ClientError:
            return False

    def get_file_info(self, relative_path: str) -> dict:
        head = self.client.head_object(Bucket=self.bucket, Key=self._key(relative_path))
        return dict(
            filename=Path(relative_path).name,
            extension=Path(relative_path).suffix,
            size=head["ContentLength"],
            modified=head.get("LastModified"),
        )

    def read_file(self, relative_path: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=self._key(relative_path))
        return response["Body"].read()


def build_file_storage(config=settings) -> FileStorage:
    if config.STORAGE_BACKEND == "spaces":
        return SpacesFileStorage.from_settings(config)
    return LocalFileStorage(config.UPLOAD_DIR)


def get_file_storage(request: Request) -> FileStorage:
    return request.app.state.storage
