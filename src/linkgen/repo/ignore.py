from __future__ import annotations

from pathlib import Path

DEFAULT_IGNORES = {
    ".git",
    "target",
    "node_modules",
    "dist",
    "build",
    ".cargo",
    ".idea",
    ".vscode",
}


def should_ignore_dir(dir_path: Path) -> bool:
    return dir_path.name in DEFAULT_IGNORES or dir_path.name.startswith(".")
