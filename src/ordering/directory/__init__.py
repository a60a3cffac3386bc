"""Directory factory.

``get_directory()`` returns the active collaborator directory. Deployments
install their adapter at startup with ``set_directory()``; development and
tests fall back to an empty ``InMemoryDirectory``.
"""

from ordering.directory.fake_adapter import InMemoryDirectory
from ordering.directory.port import Directory

_current_directory: Directory | None = None


def get_directory() -> Directory:
    """Return the current directory. Defaults to InMemoryDirectory."""
    global _current_directory
    if _current_directory is None:
        _current_directory = InMemoryDirectory()
    return _current_directory


def set_directory(directory: Directory) -> None:
    """Override the active directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_directory() -> None:
    """Reset to default directory."""
    global _current_directory
    _current_directory = None
