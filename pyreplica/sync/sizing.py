"""Size classes selecting the I/O buffer used for copying and hashing."""

from enum import Enum

from ..utils import (
    LARGE_BUFFER_SIZE,
    MEDIUM_BUFFER_SIZE,
    MEDIUM_FILE_THRESHOLD,
    SMALL_BUFFER_SIZE,
    SMALL_FILE_THRESHOLD,
)


class SizeClass(str, Enum):
    """Buckets of file sizes, each with its own buffer size."""

    SMALL = "small"
    """Files up to 8 KiB"""

    MEDIUM = "medium"
    """Files up to 10 MiB"""

    LARGE = "large"
    """Files larger than 10 MiB"""

    @property
    def buffer_size(self) -> int:
        """Buffer size in bytes used for reads and writes of this class."""
        return _BUFFER_SIZES[self]

    @classmethod
    def for_size(cls, size: int) -> "SizeClass":
        """Classify a file size.

        Args:
            size: File size in bytes

        Returns:
            Size class for the file

        Examples:
            >>> SizeClass.for_size(4 * 1024)
            <SizeClass.SMALL: 'small'>
            >>> SizeClass.for_size(50 * 1024 * 1024).buffer_size
            262144
        """
        if size <= SMALL_FILE_THRESHOLD:
            return cls.SMALL
        if size <= MEDIUM_FILE_THRESHOLD:
            return cls.MEDIUM
        return cls.LARGE


_BUFFER_SIZES = {
    SizeClass.SMALL: SMALL_BUFFER_SIZE,
    SizeClass.MEDIUM: MEDIUM_BUFFER_SIZE,
    SizeClass.LARGE: LARGE_BUFFER_SIZE,
}
