"""File-backed document store for a vault directory.

Documents are addressed by vault-relative POSIX paths such as
``Tasks/Home.md`` or ``Daily/2024-03-01.md``.
"""

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write(path: Path, content: str) -> None:
    """Write content atomically via tempfile + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


class VaultStore:
    """Read and write markdown documents below a vault root."""

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()

    def resolve(self, path: str) -> Path:
        return self.root / path

    def relative(self, path: Path) -> str:
        return Path(path).resolve().relative_to(self.root.resolve()).as_posix()

    def list_documents(self, prefix: str = "") -> list[str]:
        """Markdown documents below the *prefix* folder, sorted by path."""
        folder = prefix.strip("/")
        base = self.root / folder if folder else self.root
        if not base.is_dir():
            return []

        paths = []
        for file in base.rglob("*.md"):
            rel = file.relative_to(self.root).as_posix()
            # Skip hidden folders such as .obsidian and .trash
            if any(part.startswith(".") for part in rel.split("/")):
                continue
            if file.is_file():
                paths.append(rel)
        return sorted(paths)

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    def read_text(self, path: str) -> str:
        # newline="" keeps "\r\n" intact so a rewrite does not touch line endings
        with open(self.resolve(path), encoding="utf-8", newline="") as handle:
            return handle.read()

    def write_text(self, path: str, content: str) -> None:
        atomic_write(self.resolve(path), content)
        logger.debug("Wrote %s", path)


class DryRunStore(VaultStore):
    """A VaultStore that reports writes instead of performing them."""

    def __init__(self, root: Path):
        super().__init__(root)
        self.pending: dict[str, str] = {}

    def exists(self, path: str) -> bool:
        return path in self.pending or super().exists(path)

    def read_text(self, path: str) -> str:
        if path in self.pending:
            return self.pending[path]
        return super().read_text(path)

    def write_text(self, path: str, content: str) -> None:
        self.pending[path] = content
        logger.info("Would write %s", path)
