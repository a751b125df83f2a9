import logging
import os

from gallery.exceptions import PathViolationError

logger = logging.getLogger(__name__)


class PathGuard:
    """
    Confines filesystem access to a single root directory.

    A candidate is rejected when it contains a ``..`` segment, or when its real
    path (symlinks resolved) is neither the root itself nor beneath it.
    """

    def __init__(self, root: str):
        self.root = os.path.realpath(root)
        self._prefix = self.root if self.root.endswith(os.sep) else self.root + os.sep

    def join(self, relative: str) -> str:
        """Join a user-supplied fragment onto the root without normalizing it."""
        return os.path.join(self.root, relative.lstrip("/")) if relative else self.root

    def is_safe(self, candidate: str) -> bool:
        if "\x00" in candidate:
            logger.warning(f"Rejected path with NUL byte: {candidate!r}")
            return False

        if ".." in candidate.replace("\\", "/").split("/"):
            logger.warning(f"Rejected path with traversal segment: {candidate}")
            return False

        try:
            resolved = os.path.realpath(os.path.normpath(candidate))
        except ValueError as e:
            # embedded NUL bytes and similar malformed input
            logger.warning(f"Rejected malformed path {candidate!r}: {e}")
            return False
        safe = resolved == self.root or resolved.startswith(self._prefix)
        if not safe:
            logger.warning(f"Rejected path outside image root: {candidate} -> {resolved}")
        logger.debug(f"is_safe({candidate}): {safe}")
        return safe

    def resolve(self, relative: str) -> str:
        """Return the root-joined real path for ``relative`` or raise PathViolationError."""
        candidate = self.join(relative)
        if not self.is_safe(candidate):
            raise PathViolationError(candidate)
        return os.path.realpath(candidate)

    def relative_to_root(self, path: str) -> str:
        return os.path.relpath(path, self.root).replace(os.sep, "/")
