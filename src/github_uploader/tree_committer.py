"""
Replace a branch's history with a single commit built from local files.

The run is a fixed sequence of Git Data API calls:

1. look up ``refs/heads/<branch>``
2. start from an empty base tree (no parent commit is read)
3. upload every file as a blob, concurrently
4. collect the blob SHAs into tree entries
5. create the tree
6. create a parentless commit
7. force-update the branch to the new commit

Only step 3 runs in parallel. Every other step is a single call whose failure
is raised straight to the caller.
"""

import concurrent.futures
import time
from typing import Dict, List, Optional

from loguru import logger

from core.models import CommitAuthor, CommitResult, TreeEntry

from .github_client import BlobUploadError, GitHubAPIError, GitHubClient
from .local_files import LocalFile


class TreeCommitter:
    """Builds and publishes a one-commit history for a branch."""

    def __init__(self, client: GitHubClient, branch: str, max_workers: int = 0,
                 author: Optional[CommitAuthor] = None):
        """
        Args:
            client: Authenticated Git Data API client
            branch: Branch to overwrite
            max_workers: Upload pool width; 0 means one worker per file
            author: Optional commit author (defaults to the token owner)
        """
        if not branch:
            raise ValueError("branch must not be empty")
        if max_workers < 0:
            raise ValueError("max_workers must be >= 0")

        self.client = client
        self.branch = branch
        self.max_workers = max_workers
        self.author = author

    def commit_files(self, files: List[LocalFile], message: str) -> CommitResult:
        """
        Commit ``files`` as the sole content of the branch.

        Raises:
            ValueError: If ``files`` is empty or repeats a repository path
            BlobUploadError: If any blob upload failed (after all uploads finished)
            GitHubAPIError: If the ref lookup, tree, commit or ref update call failed
        """
        if not files:
            raise ValueError("No files to commit")
        paths = [f.repo_path for f in files]
        if len(set(paths)) != len(paths):
            raise ValueError("Duplicate repository paths in file list")

        start = time.monotonic()
        repo = f"{self.client.owner}/{self.client.repo_name}"
        logger.info(f"Committing {len(files)} file(s) to {repo}@{self.branch}")

        ref = self.client.get_ref(self.branch)
        previous_sha = (ref.get("object") or {}).get("sha")
        logger.info(f"Resolved {ref.get('ref', 'refs/heads/' + self.branch)} at {previous_sha}")

        entries = self._upload_blobs(files)

        tree = self.client.create_tree(entries, base_tree=None)
        tree_sha = tree["sha"]
        logger.info(f"Created tree {tree_sha} with {len(entries)} entries")

        commit = self.client.create_commit(message, tree_sha, parents=[], author=self.author)
        commit_sha = commit["sha"]
        logger.info(f"Created commit {commit_sha}")

        self.client.update_ref(self.branch, commit_sha, force=True)
        elapsed = time.monotonic() - start

        html_url = commit.get("html_url")
        logger.info(f"✅ Commit created: {html_url or commit_sha}")

        return CommitResult(
            ref=ref.get("ref", f"refs/heads/{self.branch}"),
            previous_sha=previous_sha,
            tree_sha=tree_sha,
            commit_sha=commit_sha,
            html_url=html_url,
            entries=entries,
            elapsed_seconds=elapsed,
        )

    def _upload_blobs(self, files: List[LocalFile]) -> List[TreeEntry]:
        """Fan out one blob upload per file and gather every result before returning."""
        workers = self.max_workers or len(files)
        workers = min(workers, len(files))
        logger.info(f"Uploading {len(files)} blob(s) with {workers} worker(s)")
        self.client.ensure_pool_size(workers)

        entries: List[TreeEntry] = []
        first_error: Optional[BaseException] = None
        failed = 0

        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures: Dict[concurrent.futures.Future, LocalFile] = {
                executor.submit(self._upload_one, local_file): local_file
                for local_file in files
            }

            for future in concurrent.futures.as_completed(futures):
                local_file = futures[future]
                try:
                    sha = future.result()
                except Exception as e:
                    failed += 1
                    logger.error(f"❌ Blob upload failed for {local_file.repo_path}: {e}")
                    if first_error is None:
                        if isinstance(e, GitHubAPIError):
                            e = BlobUploadError(local_file.repo_path, e)
                        first_error = e
                    continue

                entries.append(TreeEntry(path=local_file.repo_path, sha=sha))

        if first_error is not None:
            logger.error(f"{failed}/{len(files)} blob upload(s) failed, aborting before tree creation")
            if isinstance(first_error, BlobUploadError):
                raise first_error from first_error.cause
            raise first_error

        entries.sort(key=lambda entry: entry.path)
        return entries

    def _upload_one(self, local_file: LocalFile) -> str:
        content, encoding = local_file.blob_payload()
        sha = self.client.create_blob(content, encoding=encoding)
        logger.debug(f"Blob {sha} <- {local_file.repo_path} ({encoding})")
        return sha
