"""Helpers for loading push configuration."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

from .config_validator import ConfigValidator, apply_defaults
from .models import PushConfig


def _expand_env(value: Any) -> Any:
	"""Recursively expand environment variables in strings."""

	if isinstance(value, str):
		return os.path.expandvars(value)
	if isinstance(value, list):
		return [_expand_env(item) for item in value]
	if isinstance(value, dict):
		return {key: _expand_env(val) for key, val in value.items()}
	return value


def load_push_config(path: str | Path, validate: bool = True, require_files: bool = True) -> PushConfig:
	"""
	Load YAML config and return a :class:`PushConfig` instance.

	Args:
		path: Path to the configuration YAML file
		validate: Whether to perform configuration validation (default: True)
		require_files: Whether an empty ``files`` list is an error (False when files come from the CLI)

	Returns:
		PushConfig instance

	Raises:
		FileNotFoundError: If config file doesn't exist
		SystemExit: If validation fails with errors
	"""

	config_path = Path(path)
	if not config_path.exists():
		raise FileNotFoundError(f"Config file not found: {config_path}")

	with config_path.open("r", encoding="utf-8") as handle:
		data: Dict[str, Any] = yaml.safe_load(handle) or {}

	data = apply_defaults(data)
	expanded = _expand_env(data)

	if validate:
		validator = ConfigValidator(config_dict=data, expanded_dict=expanded, require_files=require_files)
		result = validator.validate()
		result.print_summary()

		if not result.is_valid:
			print("\n💡 Tip: Set missing environment variables using:")
			print("   export GITHUB_TOKEN='your-token'")
			sys.exit(1)

	return PushConfig.from_dict(expanded)
