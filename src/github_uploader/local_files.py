"""
Reading local files into blob-ready payloads.
"""

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from core.models import FileSpec, repo_path_problem, to_repo_path


@dataclass
class LocalFile:
    local_path: str
    repo_path: str
    content: bytes

    def blob_payload(self) -> Tuple[str, str]:
        """
        Return ``(content, encoding)`` for the blob API.

        Text that decodes as UTF-8 is sent as-is; anything else goes as base64.
        """
        try:
            return self.content.decode("utf-8"), "utf-8"
        except UnicodeDecodeError:
            return base64.b64encode(self.content).decode("ascii"), "base64"


def read_local_files(specs: Iterable[FileSpec], root: Optional[Path] = None) -> List[LocalFile]:
    """
    Read every listed file from disk.

    Args:
        specs: Files to read
        root: Directory relative paths are resolved against (default: cwd)

    Returns:
        One :class:`LocalFile` per spec, in the given order

    Raises:
        ValueError: If no files are given or two files map to the same repository path
        OSError: If a file cannot be read
    """
    files: List[LocalFile] = []
    seen = set()

    for spec in specs:
        repo_path = to_repo_path(spec.repo_path or spec.path)
        problem = repo_path_problem(repo_path)
        if problem:
            raise ValueError(f"Invalid repository path for {spec.path!r}: {problem}")
        if repo_path in seen:
            raise ValueError(f"Duplicate repository path: {repo_path}")
        seen.add(repo_path)

        local_path = Path(spec.path)
        if root is not None and not local_path.is_absolute():
            local_path = root / local_path

        try:
            content = local_path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read {local_path}: {e}")
            raise

        logger.debug(f"Read {len(content)} bytes from {local_path} -> {repo_path}")
        files.append(LocalFile(local_path=str(local_path), repo_path=repo_path, content=content))

    if not files:
        raise ValueError("No files to commit")

    return files
