"""Change events produced by mirror passes."""

from dataclasses import dataclass
from enum import Enum


class ChangeKind(str, Enum):
    """Kinds of changes a pass applies to the replica."""

    FILE_CREATED = "file_created"
    FILE_UPDATED = "file_updated"
    FILE_DELETED = "file_deleted"
    DIRECTORY_DELETED = "directory_deleted"


_LINE_TEMPLATES = {
    ChangeKind.FILE_CREATED: "(+) Copied {name} to replica folder.",
    ChangeKind.FILE_UPDATED: "(~) Updated {name} to a newer version.",
    ChangeKind.FILE_DELETED: "(-) Deleted {name} from replica.",
    ChangeKind.DIRECTORY_DELETED: "(-) Deleted folder {name} from replica.",
}


@dataclass(frozen=True)
class ChangeEvent:
    """One create/update/delete action taken during a pass."""

    kind: ChangeKind
    """What happened"""

    relative_path: str
    """Path relative to the pass root"""

    def to_line(self) -> str:
        """Render the event as a log line.

        Examples:
            >>> ChangeEvent(ChangeKind.FILE_CREATED, "docs/a.txt").to_line()
            '(+) Copied docs/a.txt to replica folder.'
        """
        return _LINE_TEMPLATES[self.kind].format(name=self.relative_path)
