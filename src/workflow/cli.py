"""Command-line entry for the push workflow."""

from __future__ import annotations

import argparse

from github_uploader import GitHubAPIError

from .pipeline import PushOverrides, run_push


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		description="Replace a GitHub branch with a single commit of local files",
	)
	parser.add_argument("files", nargs="*", help="Local files to commit (overrides the config file list)")
	parser.add_argument("--config", default="config/push.yaml", help="Path to push YAML config")
	parser.add_argument("--branch", help="Override the target branch")
	parser.add_argument("-m", "--message", help="Override the commit message")
	parser.add_argument("--max-workers", type=int, help="Blob upload workers (0 = one per file)")
	parser.add_argument("--dry-run", action="store_true", help="Read files and show the planned tree without pushing")
	return parser


def main(argv: list[str] | None = None) -> int:
	parser = build_parser()
	args = parser.parse_args(argv)

	overrides = PushOverrides(
		branch=args.branch,
		message=args.message,
		files=args.files or None,
		max_workers=args.max_workers,
		dry_run=args.dry_run,
	)

	try:
		result = run_push(args.config, overrides=overrides)
	except GitHubAPIError as e:
		print(f"[ERROR] Failed to commit files: {e}")
		return 1
	except (OSError, ValueError) as e:
		print(f"[ERROR] {e}")
		return 1

	if result.dry_run:
		print(f"[INFO] Dry run completed for {result.repository}@{result.branch}: {len(result.files)} file(s)")
		return 0

	commit = result.commit
	print("[INFO] Push completed")
	print(f"[INFO] Repository: {result.repository}@{result.branch}")
	print(f"[INFO] Files committed: {len(result.files)}")
	print(f"[INFO] Commit: {commit.html_url or commit.commit_sha}")
	print(f"[INFO] ⏱️  Took {commit.elapsed_seconds:.2f}s")
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
