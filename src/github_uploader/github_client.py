"""
GitHub client for the Git Data API.
Wraps the blob, tree, commit and reference endpoints used to build a commit remotely.
"""

from typing import Any, Dict, List, Optional

import requests
from requests.adapters import DEFAULT_POOLSIZE, HTTPAdapter
from loguru import logger

from core.models import CommitAuthor, GitHubConfig, TreeEntry


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API call fails, tagged with the operation that failed."""

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        super().__init__(f"{operation}: {message}")


class BlobUploadError(GitHubAPIError):
    """Raised when uploading the blob for a single file fails."""

    def __init__(self, path: str, cause: GitHubAPIError):
        self.path = path
        self.cause = cause
        super().__init__(cause.operation, cause.message, cause.status_code)

    def __str__(self) -> str:
        return f"blob error for {self.path}: {self.cause}"


class GitHubClient:
    """GitHub API client for Git Data operations."""

    API_VERSION = "2022-11-28"

    def __init__(self, config: GitHubConfig, session: Optional[requests.Session] = None):
        """
        Initialize GitHub client.

        Args:
            config: GitHub connection settings
            session: Optional pre-built session (one is created when omitted)
        """
        if not config.token:
            raise ValueError("GITHUB_TOKEN is not set in the environment")
        if not config.owner or not config.repo:
            raise ValueError("Repository must be in format 'owner/repo'")

        self.config = config
        self.owner = config.owner
        self.repo_name = config.repo
        self.api_base_url = config.api_base_url.rstrip("/")
        self.timeout = config.timeout

        # headers are fixed here so the session can be shared by upload threads
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {config.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.API_VERSION,
        })

        self.pool_maxsize = 0
        self.ensure_pool_size(DEFAULT_POOLSIZE)

        logger.info(f"GitHubClient initialized for {self.owner}/{self.repo_name}")

    def ensure_pool_size(self, size: int) -> None:
        """Mount adapters that keep at least ``size`` pooled connections per host."""
        if size <= self.pool_maxsize:
            return
        for prefix in ("https://", "http://"):
            self.session.mount(prefix, HTTPAdapter(pool_connections=DEFAULT_POOLSIZE, pool_maxsize=size))
        self.pool_maxsize = size
        logger.debug(f"Connection pool resized to {size}")

    @property
    def repo_url(self) -> str:
        return f"{self.api_base_url}/repos/{self.owner}/{self.repo_name}"

    def _make_request(self, operation: str, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Make an authenticated request and return the decoded JSON body.

        Failures are not retried: transport errors and non-2xx responses are
        raised as :class:`GitHubAPIError` tagged with ``operation``.
        """
        url = f"{self.repo_url}/{path.lstrip('/')}"

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{operation} request to {url} failed: {e}")
            raise GitHubAPIError(operation, str(e)) from e

        if not response.ok:
            message = _error_message(response)
            logger.error(f"{operation} failed with HTTP {response.status_code}: {message}")
            raise GitHubAPIError(operation, message, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(operation, f"invalid JSON in response: {e}", response.status_code) from e

    def get_ref(self, branch: str) -> Dict[str, Any]:
        """
        Get the reference of a branch.

        Args:
            branch: Branch name without the ``refs/heads/`` prefix

        Returns:
            Reference payload (``ref`` and ``object.sha``)
        """
        return self._make_request("GetRef", "GET", f"git/ref/heads/{branch}")

    def create_blob(self, content: str, encoding: str = "utf-8") -> str:
        """Create a blob and return its SHA."""
        data = self._make_request(
            "CreateBlob", "POST", "git/blobs",
            json={"content": content, "encoding": encoding},
        )
        return _require_sha("CreateBlob", data)["sha"]

    def create_tree(self, entries: List[TreeEntry], base_tree: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a tree from blob entries.

        Args:
            entries: Tree entries pointing at uploaded blobs
            base_tree: Tree to build on; ``None`` starts from an empty tree

        Returns:
            Tree payload (``sha`` and ``tree``)
        """
        payload: Dict[str, Any] = {"tree": [entry.to_dict() for entry in entries]}
        if base_tree:
            payload["base_tree"] = base_tree
        return _require_sha("CreateTree", self._make_request("CreateTree", "POST", "git/trees", json=payload))

    def create_commit(self, message: str, tree_sha: str, parents: Optional[List[str]] = None,
                      author: Optional[CommitAuthor] = None) -> Dict[str, Any]:
        """Create a commit object pointing at ``tree_sha``."""
        payload: Dict[str, Any] = {
            "message": message,
            "tree": tree_sha,
            "parents": list(parents or []),
        }
        if author is not None:
            payload["author"] = {"name": author.name, "email": author.email}
        return _require_sha("CreateCommit", self._make_request("CreateCommit", "POST", "git/commits", json=payload))

    def update_ref(self, branch: str, sha: str, force: bool = True) -> Dict[str, Any]:
        """Point ``refs/heads/<branch>`` at ``sha``; ``force`` allows non fast-forward updates."""
        return self._make_request(
            "UpdateRef", "PATCH", f"git/refs/heads/{branch}",
            json={"sha": sha, "force": force},
        )


def _require_sha(operation: str, data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict) or not data.get("sha"):
        raise GitHubAPIError(operation, "response did not include a sha")
    return data

def _error_message(response: requests.Response) -> str:
    """Prefer GitHub's JSON ``message`` field, fall back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    text = (response.text or "").strip()
    return text or (response.reason or f"HTTP {response.status_code}")
