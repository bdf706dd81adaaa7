"""
Upload Service

Stores uploaded files in the configured target directory.

Files keep their original extension but get a random name of
``filename_length`` characters from [a-zA-Z0-9], unless the caller asks to
keep the original name. Files are always created exclusively; an existing
file is never overwritten.
"""

import logging
import os
import secrets
import shutil
import stat
import string
from pathlib import Path
from typing import BinaryIO

from config import Config
from reasonable_excuse.models.settings import UploadSettings
from reasonable_excuse.services.config_loader import ConfigError
from reasonable_excuse.utils.performance import timer_context

logger = logging.getLogger(__name__)

NAME_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


class UploadError(ValueError):
    """Raised when an upload request itself is unacceptable."""


def generate_name(length: int) -> str:
    """Random name of ``length`` characters drawn uniformly from NAME_ALPHABET."""
    return "".join(secrets.choice(NAME_ALPHABET) for _ in range(length))


def split_extension(filename: str) -> str:
    """
    Return the text after the last '.' of ``filename``.

    Raises:
        UploadError: If the name has no '.', or is not a plain file name
    """
    if not filename or filename in (".", "..") or "/" in filename or "\\" in filename:
        raise UploadError(f"Invalid upload file name: {filename!r}")

    _, dot, extension = filename.rpartition(".")
    if not dot:
        raise UploadError(f"Upload file name has no extension: {filename!r}")
    return extension


class UploadService:
    """
    Service for writing uploads into the target directory.

    Args:
        settings: Upload route settings
        chunk_size: Copy buffer size in bytes

    Raises:
        ConfigError: If the target directory is missing or not a directory
    """

    def __init__(self, settings: UploadSettings, chunk_size: int = None):
        self.settings = settings
        self.target_dir = Path(settings.target_dir)
        self.chunk_size = chunk_size or Config.UPLOAD_CHUNK_SIZE

        try:
            mode = os.stat(self.target_dir).st_mode
        except OSError as e:
            raise ConfigError(f"Failed to check metadata of upload target dir: {e}") from e

        if not stat.S_ISDIR(mode):
            raise ConfigError(f"Upload target path {self.target_dir} is not a directory!")

        logger.info(f"Upload service storing files in {self.target_dir}")

    def store(self, filename: str, source: BinaryIO, keep_name: bool = False) -> str:
        """
        Write ``source`` into the target directory.

        Args:
            filename: Original name of the uploaded file
            source: Readable binary stream with the file contents
            keep_name: Store under ``filename`` instead of a random name

        Returns:
            The name the file was stored under

        Raises:
            UploadError: If ``filename`` is unacceptable
            FileExistsError: If ``keep_name`` is set and the file already exists
            OSError: If the file cannot be written
        """
        extension = split_extension(filename)

        while True:
            if keep_name:
                name = filename
            else:
                name = f"{generate_name(self.settings.filename_length)}.{extension}"
            path = self.target_dir / name

            try:
                out = open(path, "xb")
            except FileExistsError:
                if keep_name:
                    logger.error(f"Error opening file for upload: {path} already exists")
                    raise
                # happened to draw a name that is taken, try again
                logger.debug(f"Generated name {name} already exists, retrying")
                continue
            except OSError as e:
                logger.error(f"Error opening file for upload at {path}: {e}")
                raise

            try:
                with out, timer_context("Upload: write file"):
                    shutil.copyfileobj(source, out, self.chunk_size)
                    size = out.tell()
            except OSError as e:
                logger.error(f"Error writing file {path}: {e}")
                path.unlink(missing_ok=True)
                raise

            logger.info(f"Uploaded file {filename} to {path} ({size} bytes)")
            return name
