"""Push orchestration logic."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from core.config_loader import load_push_config
from core.models import FileSpec, PushConfig, PushResult
from github_uploader import GitHubClient, TreeCommitter, read_local_files


@dataclass
class PushOverrides:
	branch: Optional[str] = None
	message: Optional[str] = None
	files: Optional[List[str]] = None
	max_workers: Optional[int] = None
	dry_run: bool = False


def apply_overrides(config: PushConfig, overrides: Optional[PushOverrides]) -> PushConfig:
	if not overrides:
		return config

	if overrides.branch:
		config.github.branch = overrides.branch
	if overrides.message:
		config.commit.message = overrides.message
	if overrides.files:
		config.files = [FileSpec(path=path) for path in overrides.files]
	if overrides.max_workers is not None:
		if overrides.max_workers < 0:
			raise ValueError("--max-workers must be 0 or positive")
		config.upload.max_workers = overrides.max_workers
	return config


def run_push(
	config_path: str,
	overrides: Optional[PushOverrides] = None,
	client: Optional[GitHubClient] = None,
	root: Optional[Path] = None,
) -> PushResult:
	"""Load config, read the local files and replace the branch with a single commit."""

	require_files = not (overrides and overrides.files)
	config = load_push_config(config_path, require_files=require_files)
	config = apply_overrides(config, overrides)

	files = read_local_files(config.files, root=root)
	repository = config.github.full_name
	print(f"[INFO] Read {len(files)} file(s) for {repository}@{config.github.branch}")

	result = PushResult(
		repository=repository,
		branch=config.github.branch,
		files=[local_file.repo_path for local_file in files],
		dry_run=bool(overrides and overrides.dry_run),
	)

	if result.dry_run:
		print("[INFO] Dry run: no requests will be sent")
		for local_file in files:
			_, encoding = local_file.blob_payload()
			print(f"[INFO]   {local_file.local_path} -> {local_file.repo_path} ({len(local_file.content)} bytes, {encoding})")
		return result

	if client is None:
		client = GitHubClient(config.github)

	committer = TreeCommitter(
		client,
		branch=config.github.branch,
		max_workers=config.upload.max_workers,
		author=config.commit.author,
	)
	result.commit = committer.commit_files(files, config.commit.message)
	return result
