from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from linkgen.errors import GenerationIOError
from linkgen.repo.ignore import should_ignore_dir


@dataclass(frozen=True)
class SourceFile:
    rel_path: str   # relative to the controllers directory, forward slashes
    text: str

    @property
    def module(self) -> str:
        return module_name_for(self.rel_path)


def scan_controller_files(controllers_path: Path, max_files: int | None = None) -> list[str]:
    """
    Return absolute paths (as strings) of .rs files under controllers_path,
    sorted so every run visits files in the same order.
    """
    if not controllers_path.is_dir():
        raise GenerationIOError(str(controllers_path), "controllers directory does not exist")

    out: list[str] = []
    for root, dirs, files in os.walk(controllers_path):
        root_p = Path(root)

        # prune ignored dirs
        dirs[:] = sorted(d for d in dirs if not should_ignore_dir(root_p / d))

        for f in sorted(files):
            if f.endswith(".rs"):
                out.append(str((root_p / f).resolve()))
    out.sort(key=lambda p: relative_posix(Path(p), controllers_path.resolve()))
    if max_files is not None:
        out = out[:max_files]
    return out


def relative_posix(path: Path, root: Path) -> str:
    return Path(os.path.relpath(str(path), str(root))).as_posix()


def module_name_for(rel_path: str) -> str:
    """
    Rust module path of a controller file, relative to the controllers module.

      users.rs          -> users
      admin/mod.rs      -> admin
      admin/settings.rs -> admin::settings
      mod.rs            -> "" (the controllers module itself)
    """
    parts = rel_path.split("/")
    stem = parts[-1][:-3] if parts[-1].endswith(".rs") else parts[-1]
    parts = parts[:-1] if stem == "mod" else [*parts[:-1], stem]
    return "::".join(parts)


def read_sources(paths: Iterable[str], root: Path) -> Iterator[SourceFile]:
    root = root.resolve()
    for p in paths:
        fpath = Path(p)
        try:
            text = fpath.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise GenerationIOError(str(fpath), f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise GenerationIOError(str(fpath), e.strerror or str(e)) from e
        yield SourceFile(rel_path=relative_posix(fpath, root), text=text)
