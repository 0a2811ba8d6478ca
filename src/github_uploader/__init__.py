"""
GitHub Uploader Module
Provides functionality to replace a branch with a single commit of local files.
"""

from .github_client import BlobUploadError, GitHubAPIError, GitHubClient
from .local_files import LocalFile, read_local_files
from .tree_committer import TreeCommitter

__all__ = [
    'BlobUploadError',
    'GitHubAPIError',
    'GitHubClient',
    'LocalFile',
    'TreeCommitter',
    'read_local_files',
]
