"""Configuration validation and environment variable checking."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List

from .models import parse_file_spec, repo_path_problem, to_repo_path


_ENV_PATTERN = re.compile(r'\$\{([A-Z_][A-Z0-9_]*)\}')


@dataclass
class ValidationError:
	"""Represents a configuration validation error."""

	field_path: str
	message: str
	severity: str  # 'error' or 'warning'

	def __str__(self) -> str:
		prefix = "❌ ERROR" if self.severity == "error" else "⚠️  WARNING"
		return f"{prefix}: {self.field_path} - {self.message}"


@dataclass
class ValidationResult:
	"""Result of configuration validation."""

	errors: List[ValidationError]
	warnings: List[ValidationError]

	@property
	def is_valid(self) -> bool:
		"""Returns True if there are no errors (warnings are acceptable)."""
		return len(self.errors) == 0

	def print_summary(self) -> None:
		"""Print validation summary to console."""
		if self.is_valid and not self.warnings:
			print("✅ Configuration validation passed!")
			return

		if self.errors:
			print("\n" + "=" * 70)
			print("❌ Configuration Validation Errors:")
			print("=" * 70)
			for error in self.errors:
				print(f"\n  Field: {error.field_path}")
				print(f"  Issue: {error.message}")

		if self.warnings:
			print("\n" + "=" * 70)
			print("⚠️  Configuration Validation Warnings:")
			print("=" * 70)
			for warning in self.warnings:
				print(f"\n  Field: {warning.field_path}")
				print(f"  Issue: {warning.message}")

		print("\n" + "=" * 70)


class ConfigValidator:
	"""Validates push configuration after environment variable expansion."""

	DEFAULTS = {
		"GITHUB_API_URL": "https://api.github.com",
	}

	def __init__(self, config_dict: Dict[str, Any], expanded_dict: Dict[str, Any], require_files: bool = True):
		"""
		Initialize validator with both original and expanded config.

		Args:
			config_dict: Original config dict before environment variable expansion
			expanded_dict: Config dict after environment variable expansion
			require_files: Report an empty ``files`` list as an error
		"""
		self.config_dict = config_dict
		self.expanded_dict = expanded_dict
		self.require_files = require_files
		self.errors: List[ValidationError] = []
		self.warnings: List[ValidationError] = []

	def validate(self) -> ValidationResult:
		"""
		Run all validation checks.

		Returns:
			ValidationResult containing errors and warnings
		"""
		self.errors = []
		self.warnings = []

		self._check_github_section()
		self._check_commit_section()
		self._check_files()
		self._check_upload_section()
		self._check_unexpanded_vars()

		return ValidationResult(errors=self.errors, warnings=self.warnings)

	def _error(self, field_path: str, message: str) -> None:
		self.errors.append(ValidationError(field_path=field_path, message=message, severity="error"))

	def _warning(self, field_path: str, message: str) -> None:
		self.warnings.append(ValidationError(field_path=field_path, message=message, severity="warning"))

	def _check_github_section(self) -> None:
		github = self.expanded_dict.get("github") or {}

		token = github.get("token")
		if not token or not str(token).strip() or str(token).startswith("${"):
			self._error(
				"github.token",
				"GITHUB_TOKEN environment variable is required. Please set it with: export GITHUB_TOKEN='your-token'",
			)

		repository = str(github.get("repository") or "")
		owner, sep, repo = repository.partition("/")
		if not repository:
			self._error("github.repository", "Repository is required (format: owner/repo)")
		elif not sep or not owner or not repo or "/" in repo:
			self._error("github.repository", f"Repository must be in format 'owner/repo', got '{repository}'")

		if "branch" in github and not str(github.get("branch") or "").strip():
			self._error("github.branch", "Branch name must not be empty")

	def _check_commit_section(self) -> None:
		commit = self.expanded_dict.get("commit") or {}

		if not str(commit.get("message") or "").strip():
			self._warning("commit.message", "No commit message configured, the default message will be used.")

		has_name = bool(commit.get("author_name"))
		has_email = bool(commit.get("author_email"))
		if has_name != has_email:
			self._warning(
				"commit.author_name" if not has_name else "commit.author_email",
				"Both author_name and author_email are needed; the token owner will be used as author.",
			)

	def _check_files(self) -> None:
		files = self.expanded_dict.get("files") or []
		if not files:
			if self.require_files:
				self._error("files", "At least one file must be listed")
			return

		seen: Dict[str, int] = {}
		for index, item in enumerate(files):
			field_path = f"files[{index}]"
			if isinstance(item, dict) and not item.get("path"):
				self._error(field_path, "File entry is missing 'path'")
				continue

			spec = parse_file_spec(item)
			repo_path = to_repo_path(spec.repo_path or spec.path)
			problem = repo_path_problem(repo_path)
			if problem:
				self._error(field_path, problem[0].upper() + problem[1:])
			elif repo_path in seen:
				self._error(
					field_path,
					f"Repository path '{repo_path}' is already used by files[{seen[repo_path]}]",
				)
			else:
				seen[repo_path] = index

	def _check_upload_section(self) -> None:
		upload = self.expanded_dict.get("upload") or {}
		max_workers = upload.get("max_workers", 0)
		try:
			value = int(max_workers or 0)
		except (TypeError, ValueError):
			self._error("upload.max_workers", f"max_workers must be an integer, got '{max_workers}'")
			return
		if value < 0:
			self._error("upload.max_workers", "max_workers must be 0 (one worker per file) or positive")

	def _check_unexpanded_vars(self) -> None:
		"""Check for any unexpanded ${VAR} patterns that might cause issues."""
		unexpanded = self._find_unexpanded_vars(self.expanded_dict)

		for var_name, field_path, value in unexpanded:
			if field_path == "github.token":
				continue  # already reported as an error
			self._warning(
				field_path,
				f"Value contains unexpanded variable: {value}. Environment variable ${{{var_name}}} may not be set.",
			)

	def _find_unexpanded_vars(self, obj: Any, path: str = "") -> List[tuple[str, str, str]]:
		"""
		Find unexpanded ${VAR} patterns in the expanded config.

		Returns:
			List of (var_name, field_path, value) tuples
		"""
		results = []

		if isinstance(obj, str):
			for var_name in _ENV_PATTERN.findall(obj):
				results.append((var_name, path, obj))

		elif isinstance(obj, dict):
			for key, value in obj.items():
				new_path = f"{path}.{key}" if path else key
				results.extend(self._find_unexpanded_vars(value, new_path))

		elif isinstance(obj, list):
			for i, item in enumerate(obj):
				new_path = f"{path}[{i}]"
				results.extend(self._find_unexpanded_vars(item, new_path))

		return results


def apply_defaults(config_dict: Dict[str, Any]) -> Dict[str, Any]:
	"""
	Apply default values for missing environment variables before expansion.

	Args:
		config_dict: Configuration dictionary

	Returns:
		Modified config dictionary with defaults applied
	"""
	if "GITHUB_API_URL" not in os.environ:
		api_url_value = (config_dict.get("github") or {}).get("api_base_url", "")
		if api_url_value == "${GITHUB_API_URL}":
			os.environ["GITHUB_API_URL"] = ConfigValidator.DEFAULTS["GITHUB_API_URL"]
			print(f"[INFO] GITHUB_API_URL not set, using default: {ConfigValidator.DEFAULTS['GITHUB_API_URL']}")

	return config_dict
