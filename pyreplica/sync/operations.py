"""File system operations used by mirror passes."""

import hashlib
import shutil
from pathlib import Path

from ..utils import DEFAULT_HASH_ALGORITHM


class MirrorOperations:
    """Copy, hash and delete primitives with caller-chosen buffer sizes.

    None of these touch the source tree except for reading it.
    """

    def __init__(self, hash_algorithm: str = DEFAULT_HASH_ALGORITHM):
        """Initialize mirror operations.

        Args:
            hash_algorithm: Name of the hashlib digest used for change
                detection (md5 by default)
        """
        # Fail early on unknown algorithm names
        hashlib.new(hash_algorithm)
        self.hash_algorithm = hash_algorithm

    def copy_file(self, source: Path, destination: Path, buffer_size: int) -> int:
        """Copy a file through buffers of the given size.

        The destination is created or truncated. Its modification time is
        the time of the copy, which keeps it newer than the source until the
        source changes again.

        Args:
            source: File to read
            destination: File to write
            buffer_size: Buffer size in bytes for both streams

        Returns:
            Number of bytes copied
        """
        copied = 0
        with open(source, "rb", buffering=buffer_size) as src, open(
            destination, "wb", buffering=buffer_size
        ) as dst:
            while True:
                chunk = src.read(buffer_size)
                if not chunk:
                    break
                dst.write(chunk)
                copied += len(chunk)
        return copied

    def file_digest(self, path: Path, buffer_size: int) -> str:
        """Compute the hex digest of a file.

        Args:
            path: File to hash
            buffer_size: Read size in bytes

        Returns:
            Hex digest string
        """
        digest = hashlib.new(self.hash_algorithm)
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(buffer_size), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def delete_file(self, path: Path) -> None:
        """Delete a single replica file."""
        path.unlink()

    def delete_tree(self, path: Path) -> None:
        """Delete a replica folder and everything below it."""
        shutil.rmtree(path)

    def make_directory(self, path: Path) -> None:
        """Create a replica folder if it does not exist yet.

        The parent must exist; roots are never created here.
        """
        path.mkdir(exist_ok=True)
