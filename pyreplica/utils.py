"""Utility functions and constants for pyreplica."""

from datetime import datetime
from typing import Optional

# =============================================================================
# Constants for file operations
# =============================================================================

# Files up to this size use the small buffer (8 KiB)
SMALL_FILE_THRESHOLD: int = 8 * 1024

# Files up to this size use the medium buffer (10 MiB)
MEDIUM_FILE_THRESHOLD: int = 10 * 1024 * 1024

SMALL_BUFFER_SIZE: int = 8 * 1024
MEDIUM_BUFFER_SIZE: int = 64 * 1024
LARGE_BUFFER_SIZE: int = 256 * 1024

# Parallel workers per pool when nothing else is configured
DEFAULT_MAX_WORKERS: int = 4

# Seconds between two mirror passes
DEFAULT_INTERVAL: int = 60

# Digest used by the change detection heuristic
DEFAULT_HASH_ALGORITHM: str = "md5"


# =============================================================================
# Formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment the way log banners show it (``YYYY-MM-DD HH:MM:SS``).

    Args:
        moment: Time to format, defaults to now

    Returns:
        Formatted timestamp string
    """
    if moment is None:
        moment = datetime.now()
    return moment.strftime("%Y-%m-%d %H:%M:%S")
