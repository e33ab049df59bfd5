"""Helpers for slash-separated coordination namespace paths"""

PARTICIPANT_PREFIX = "participant-"
SEQUENCE_WIDTH = 10


def normalize_path(path: str) -> str:
    """Return the path with a single leading slash and no trailing slash"""
    stripped = path.strip("/")
    if not stripped:
        raise ValueError("Barrier path must not be empty")
    return "/" + stripped


def join_path(parent: str, name: str) -> str:
    return f"{normalize_path(parent)}/{name}"


def sequential_name(prefix: str, sequence: int) -> str:
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"
