"""Core datamodels used across the gh-tree-commit workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_COMMIT_MESSAGE = "AutoInitialized main branch with a default readme file"


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------


@dataclass
class GitHubConfig:
	"""Connection settings for the target repository."""

	token: Optional[str]
	owner: str
	repo: str
	branch: str = "main"
	api_base_url: str = DEFAULT_API_BASE_URL
	timeout: float = 30.0

	@property
	def full_name(self) -> str:
		return f"{self.owner}/{self.repo}"


@dataclass
class CommitAuthor:
	name: str
	email: str


@dataclass
class CommitConfig:
	message: str = DEFAULT_COMMIT_MESSAGE
	author: Optional[CommitAuthor] = None


@dataclass
class FileSpec:
	"""A local file to commit and the path it should have in the repository."""

	path: str
	repo_path: Optional[str] = None


@dataclass
class UploadConfig:
	# 0 means one worker per file
	max_workers: int = 0


@dataclass
class PushConfig:
	github: GitHubConfig
	commit: CommitConfig
	files: List[FileSpec]
	upload: UploadConfig

	@staticmethod
	def from_dict(payload: Dict[str, Any]) -> "PushConfig":
		github_section = payload.get("github", {}) or {}
		commit_section = payload.get("commit", {}) or {}
		upload_section = payload.get("upload", {}) or {}

		repository = str(github_section.get("repository", ""))
		owner, _, repo = repository.partition("/")

		author = None
		author_name = commit_section.get("author_name")
		author_email = commit_section.get("author_email")
		if author_name and author_email:
			author = CommitAuthor(name=author_name, email=author_email)

		return PushConfig(
			github=GitHubConfig(
				token=github_section.get("token") or None,
				owner=owner,
				repo=repo,
				branch=github_section.get("branch") or "main",
				api_base_url=(github_section.get("api_base_url") or DEFAULT_API_BASE_URL).rstrip("/"),
				timeout=float(github_section.get("timeout", 30.0)),
			),
			commit=CommitConfig(
				message=commit_section.get("message") or DEFAULT_COMMIT_MESSAGE,
				author=author,
			),
			files=[parse_file_spec(item) for item in payload.get("files", []) or []],
			upload=UploadConfig(
				max_workers=int(upload_section.get("max_workers", 0) or 0),
			),
		)


def parse_file_spec(item: Any) -> FileSpec:
	"""Accept either a bare path string or a ``{path, repo_path}`` mapping."""

	if isinstance(item, dict):
		return FileSpec(path=str(item["path"]), repo_path=item.get("repo_path") or None)
	return FileSpec(path=str(item))


def to_repo_path(path: str) -> str:
	"""Normalise a local path into a repository path (forward slashes, no leading ``./`` or ``/``)."""

	normalised = str(path).replace("\\", "/")
	while normalised.startswith("./"):
		normalised = normalised[2:]
	return normalised.lstrip("/")


def repo_path_problem(repo_path: str) -> Optional[str]:
	"""Return why ``repo_path`` cannot be a tree entry path, or ``None`` if it can."""

	if not repo_path:
		return "repository path is empty"
	for segment in repo_path.split("/"):
		if segment == "":
			return f"repository path '{repo_path}' contains an empty segment"
		if segment in (".", ".."):
			return f"repository path '{repo_path}' contains a '{segment}' segment"
	return None


# ---------------------------------------------------------------------------
# Runtime data models
# ---------------------------------------------------------------------------


@dataclass
class TreeEntry:
	path: str
	sha: str
	mode: str = "100644"
	type: str = "blob"

	def to_dict(self) -> Dict[str, str]:
		return {
			"path": self.path,
			"mode": self.mode,
			"type": self.type,
			"sha": self.sha,
		}


@dataclass
class CommitResult:
	ref: str
	previous_sha: Optional[str]
	tree_sha: str
	commit_sha: str
	html_url: Optional[str]
	entries: List[TreeEntry] = field(default_factory=list)
	elapsed_seconds: float = 0.0


@dataclass
class PushResult:
	"""Outcome of a workflow run; ``commit`` is ``None`` for dry runs."""

	repository: str
	branch: str
	files: List[str]
	commit: Optional[CommitResult] = None
	dry_run: bool = False
