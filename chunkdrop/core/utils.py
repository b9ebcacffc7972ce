from typing import Tuple


def format_size(size: float) -> str:
    """Get human-readable size."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def split_relative_path(path: str) -> Tuple[str, str]:
    """Split 'a/b/c.txt' into ('a/b', 'c.txt'); folder is '' at the root."""
    parts = [p for p in path.replace('\\', '/').split('/') if p]
    if not parts:
        return '', ''
    return '/'.join(parts[:-1]), parts[-1]


def join_relative_path(base: str, name: str) -> str:
    """Join a drop-relative folder and a child name."""
    return f"{base}/{name}" if base else name
