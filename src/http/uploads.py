"""Uploaded file handles and upload storage strategies.

An ``UploadedFile`` wraps the storage python-multipart filled while the body
was decomposed: an in-memory buffer for small uploads, a named temporary
file once the upload grows past the configured threshold. The handle owns
that storage until ``release()`` is called; nothing reclaims it otherwise.

An ``UploadHandler`` lets the owner of a request decide where upload content
is written. It is asked once per multipart request, before decomposition.
"""

import contextlib
import os
import shutil
import tempfile
from pathlib import Path
from typing import IO, Protocol, runtime_checkable

from loguru import logger
from python_multipart.multipart import File


@runtime_checkable
class UploadHandler(Protocol):
    """Strategy that provisions the storage area for one request's uploads."""

    def init_upload(self) -> str | os.PathLike[str] | None:
        """Return the directory that should receive upload content.

        Returns:
            str | os.PathLike[str] | None: Target directory, or None for the
                system temporary directory.
        """
        ...


class TemporaryUploadHandler:
    """Provision a fresh directory per request under a base directory.

    The directory is created lazily on the first ``init_upload()`` call and
    can be removed with ``cleanup()`` once every upload has been released.

    Args:
        base_dir: Parent of the per-request directories (system temp if None)
        prefix: Name prefix of the created directories
    """

    def __init__(
        self,
        base_dir: str | os.PathLike[str] | None = None,
        prefix: str = "upload-",
    ) -> None:
        self.base_dir = base_dir
        self.prefix = prefix
        self.directory: Path | None = None

    def init_upload(self) -> Path:
        """Create the per-request upload directory.

        Returns:
            Path: The provisioned directory.
        """
        if self.directory is None:
            self.directory = Path(
                tempfile.mkdtemp(prefix=self.prefix, dir=self.base_dir)
            )
            logger.debug("Provisioned upload directory {}", self.directory)
        return self.directory

    def cleanup(self) -> None:
        """Remove the provisioned directory and anything left in it."""
        if self.directory is None:
            return
        shutil.rmtree(self.directory, ignore_errors=True)
        logger.debug("Removed upload directory {}", self.directory)
        self.directory = None


class UploadedFile:
    """Handle for one uploaded file.

    Attributes:
        field_name: Form field the file was submitted under
        original_name: File name supplied by the client
        mime_type: Content type declared for the part
    """

    def __init__(
        self, field_name: str, original_name: str, mime_type: str, storage: File
    ) -> None:
        self.field_name = field_name
        self.original_name = original_name
        self.mime_type = mime_type
        self._storage = storage
        self._released = False

    @property
    def size(self) -> int:
        """Number of bytes received."""
        return self._storage.size

    @property
    def in_memory(self) -> bool:
        """Whether the content is still held in memory."""
        return self._storage.in_memory

    @property
    def path(self) -> Path | None:
        """Location of the temporary file, or None while the content is in memory."""
        if self._storage.in_memory or self._storage.actual_file_name is None:
            return None
        return Path(os.fsdecode(self._storage.actual_file_name))

    @property
    def released(self) -> bool:
        """Whether the backing storage has been released."""
        return self._released

    @property
    def file(self) -> IO[bytes]:
        """The underlying binary file object, rewound to the start."""
        if self._released:
            msg = f"Upload {self.original_name!r} has already been released"
            raise ValueError(msg)
        fileobj = self._storage.file_object
        fileobj.seek(0)
        return fileobj

    def read(self) -> bytes:
        """Read the whole uploaded content.

        Returns:
            bytes: The received bytes.

        Raises:
            ValueError: If the upload has already been released.
        """
        return self.file.read()

    def save(self, destination: str | os.PathLike[str]) -> Path:
        """Copy the uploaded content to a permanent location.

        Args:
            destination: Target file path

        Returns:
            Path: The written path.
        """
        target = Path(destination)
        with target.open("wb") as out:
            shutil.copyfileobj(self.file, out)
        return target

    def release(self) -> None:
        """Release the backing storage.

        Closing the storage deletes its temporary file. Calling this again, or
        after the file vanished from disk, does nothing.
        """
        if self._released:
            return
        path = self.path
        with contextlib.suppress(FileNotFoundError):
            self._storage.close()
            if path is not None:
                path.unlink()
        self._released = True

    def __repr__(self) -> str:
        return (
            f"UploadedFile(field_name={self.field_name!r}, "
            f"original_name={self.original_name!r}, mime_type={self.mime_type!r}, "
            f"size={self.size})"
        )
