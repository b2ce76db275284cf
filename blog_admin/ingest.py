"""
Server-side storage for batches of cropped image variants.

Every variant of a batch is stored under the same base filename inside the
directory of its aspect ratio:

    {upload_root}/images/1-1/1718000000000-k3j2h1g0f9e.jpg
    {upload_root}/images/16-9/1718000000000-k3j2h1g0f9e.jpg
"""
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .conf import admin_settings
from .exceptions import (
    BatchMismatch,
    EmptyBatch,
    InvalidBaseIdentifier,
    PayloadTooLarge,
    UnsupportedType,
)
from .ratios import catalog as default_catalog
from .utils import generate_base_identifier

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class StoredImageRecord:
    """Where one accepted variant ended up."""

    url: str
    ratio_name: str
    base_identifier: str
    byte_size: int
    mime_type: str
    directory: str = ""

    def as_dict(self):
        """Return the JSON shape used by the upload endpoint."""
        return {
            "url": self.url,
            "aspectRatio": self.ratio_name,
            "directory": self.directory,
            "fileName": self.base_identifier,
            "size": self.byte_size,
            "type": self.mime_type,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            url=data["url"],
            ratio_name=data["aspectRatio"],
            base_identifier=data["fileName"],
            byte_size=data["size"],
            mime_type=data["type"],
            directory=data.get("directory", ""),
        )


def validate_base_identifier(base_identifier):
    """Reject names that could escape their ratio directory."""
    if (
        not base_identifier
        or base_identifier.startswith(".")
        or os.path.basename(base_identifier) != base_identifier
        or "/" in base_identifier
        or "\\" in base_identifier
        or "\0" in base_identifier
    ):
        raise InvalidBaseIdentifier(f"Invalid base filename: {base_identifier!r}")


def _write(file_obj, handle):
    if hasattr(file_obj, "chunks"):
        for chunk in file_obj.chunks():
            handle.write(chunk)
    else:
        if hasattr(file_obj, "seek"):
            file_obj.seek(0)
        handle.write(file_obj.read())


def _rollback(staged, placed):
    """Undo a partly committed batch and drop its temporaries."""
    for temp_path, final_path, backup_path in reversed(placed):
        # A missing temporary means it was already renamed into place
        if not temp_path.exists():
            final_path.unlink(missing_ok=True)
        if backup_path is not None:
            os.replace(backup_path, final_path)
    for temp_path, _ in staged:
        temp_path.unlink(missing_ok=True)


class UploadIngestService:
    """
    Validate and store a batch of image variants.

    The whole batch is validated before anything touches the disk. Files
    are then staged next to their destination and renamed into place only
    once every file of the batch has been written.
    """

    def __init__(
        self,
        upload_root=None,
        public_root=None,
        max_size=None,
        allowed_types=None,
        catalog=None,
    ):
        self.upload_root = Path(upload_root or admin_settings.UPLOAD_ROOT)
        self.public_root = (public_root or admin_settings.PUBLIC_ROOT).rstrip("/")
        self.max_size = max_size or admin_settings.MAX_UPLOAD_SIZE
        self.allowed_types = allowed_types or admin_settings.ALLOWED_IMAGE_TYPES
        self.catalog = catalog or default_catalog

    @property
    def images_root(self):
        return self.upload_root / admin_settings.IMAGES_DIRECTORY

    def directory_for(self, ratio):
        return self.images_root / ratio.directory

    def public_url(self, ratio, base_identifier):
        return (
            f"{self.public_root}/{admin_settings.IMAGES_DIRECTORY}/"
            f"{ratio.directory}/{base_identifier}"
        )

    def validate(self, files, ratio_tags, base_identifier):
        """
        Check the whole batch and return the resolved ratio for each file.

        Raises:
            EmptyBatch, BatchMismatch, InvalidBaseIdentifier,
            UnsupportedType, PayloadTooLarge, UnknownRatio
        """
        if not files:
            raise EmptyBatch()
        if len(files) != len(ratio_tags):
            raise BatchMismatch()
        validate_base_identifier(base_identifier)
        self.check_files(files)
        return [self.catalog.resolve(tag) for tag in ratio_tags]

    def check_files(self, files):
        """Reject the batch if any file has a bad type or size."""
        for file_obj in files:
            if getattr(file_obj, "content_type", None) not in self.allowed_types:
                raise UnsupportedType()
        for file_obj in files:
            if file_obj.size > self.max_size:
                limit_mb = self.max_size / (1024 * 1024)
                raise PayloadTooLarge(
                    f"File too large. Maximum size is {limit_mb:g}MB."
                )

    def ingest(self, files, ratio_tags, base_identifier):
        """
        Store every file under ``base_identifier`` in its ratio directory.

        Args:
            files: uploaded files (``content_type``, ``size``, ``chunks()``)
            ratio_tags: ratio name or directory per file, same order
            base_identifier: filename shared by every file of the batch

        Returns:
            List of StoredImageRecord, one per file, in input order.
        """
        files = list(files)
        ratio_tags = list(ratio_tags)
        ratios = self.validate(files, ratio_tags, base_identifier)

        staged = []
        placed = []
        try:
            for file_obj, ratio in zip(files, ratios):
                directory = self.directory_for(ratio)
                directory.mkdir(parents=True, exist_ok=True)
                handle = tempfile.NamedTemporaryFile(
                    dir=directory, prefix=".upload-", delete=False
                )
                staged.append((Path(handle.name), directory / base_identifier))
                with handle:
                    _write(file_obj, handle)
                os.chmod(handle.name, 0o644)

            for temp_path, final_path in staged:
                backup_path = None
                if final_path.is_file():
                    backup_path = temp_path.with_name(f"{temp_path.name}.bak")
                    os.replace(final_path, backup_path)
                placed.append((temp_path, final_path, backup_path))
                os.replace(temp_path, final_path)
        except Exception:
            logger.warning("Rolling back upload batch %s", base_identifier)
            _rollback(staged, placed)
            raise

        for _, _, backup_path in placed:
            if backup_path is not None:
                backup_path.unlink(missing_ok=True)

        records = []
        for (_, final_path), file_obj, ratio in zip(staged, files, ratios):
            logger.debug("Stored %s variant at %s", ratio.name, final_path)
            records.append(
                StoredImageRecord(
                    url=self.public_url(ratio, base_identifier),
                    ratio_name=ratio.name,
                    base_identifier=base_identifier,
                    byte_size=file_obj.size,
                    mime_type=file_obj.content_type,
                    directory=ratio.directory,
                )
            )

        logger.info(
            "Stored %d image variant(s) as %s", len(records), base_identifier
        )
        return records

    def store(self, file_obj):
        """
        Store one uploaded file directly under the upload root.

        The file gets a fresh generated name keeping its extension.

        Returns:
            (public url, file name)
        """
        self.check_files([file_obj])
        original_name = getattr(file_obj, "name", None) or ""
        if original_name.rsplit(".", 1)[-1].lower() not in ("jpg", "jpeg", "png", "gif", "webp"):
            original_name = f"upload.{IMAGE_EXTENSIONS.get(file_obj.content_type, 'jpg')}"
        file_name = generate_base_identifier(original_name)
        self.upload_root.mkdir(parents=True, exist_ok=True)
        with open(self.upload_root / file_name, "wb") as handle:
            _write(file_obj, handle)
        logger.info("Stored upload %s", file_name)
        return f"{self.public_root}/{file_name}", file_name
