from __future__ import annotations

import hashlib
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from linkgen.errors import GenerationIOError


@dataclass(frozen=True)
class Artifact:
    path: Path
    content: str


@dataclass(frozen=True)
class WriteOutcome:
    path: Path
    written: bool   # False when the file already had this exact content


def _normalized(content: str) -> bytes:
    # POSIX trailing newline
    if not content.endswith("\n"):
        content += "\n"
    return content.encode("utf-8")


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def is_up_to_date(artifact: Artifact) -> bool:
    try:
        existing = artifact.path.read_bytes()
    except OSError:
        return False
    return _digest(existing) == _digest(_normalized(artifact.content))


def write_artifacts(artifacts: Iterable[Artifact]) -> list[WriteOutcome]:
    """
    Write all artifacts, or none.

    Phase 1 writes every changed artifact to a temp file next to its target.
    If any of those writes fails, all temp files are removed and no target is
    touched. Phase 2 renames each temp file into place with os.replace, which
    is atomic per file. Files whose content is unchanged are left alone so
    their mtime does not trigger rebuilds.
    """
    artifacts = list(artifacts)
    staged: list[tuple[Path, Path]] = []
    outcomes: list[WriteOutcome] = []

    try:
        for artifact in artifacts:
            if is_up_to_date(artifact):
                outcomes.append(WriteOutcome(path=artifact.path, written=False))
                continue
            artifact.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{artifact.path.name}.", suffix=".tmp", dir=str(artifact.path.parent)
            )
            tmp = Path(tmp_name)
            staged.append((tmp, artifact.path))
            with os.fdopen(fd, "wb") as f:
                f.write(_normalized(artifact.content))
                f.flush()
                os.fsync(f.fileno())
            outcomes.append(WriteOutcome(path=artifact.path, written=True))
    except OSError as e:
        _discard(staged)
        target = getattr(e, "filename", None) or (str(staged[-1][1]) if staged else "output")
        raise GenerationIOError(str(target), e.strerror or str(e)) from e

    try:
        for tmp, target in staged:
            os.replace(tmp, target)
    except OSError as e:
        _discard(staged)
        raise GenerationIOError(str(target), e.strerror or str(e)) from e

    return outcomes


def _discard(staged: list[tuple[Path, Path]]) -> None:
    for tmp, _ in staged:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
