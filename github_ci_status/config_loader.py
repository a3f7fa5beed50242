# github_ci_status/config_loader.py
import os
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATHS = [".github-ci-status.yml", ".github-ci-status.yaml"]


def load_repo_config(base_dir: str = ".") -> Dict[str, Any]:
    """
    Load repo-level YAML config if present.
    Returns a dict (empty if not found or invalid).
    """
    for path in DEFAULT_CONFIG_PATHS:
        full = os.path.join(base_dir, path)
        if os.path.exists(full):
            try:
                with open(full, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError):
                # Non-fatal: just ignore unreadable or malformed files
                return {}
            if isinstance(data, dict):
                return data
            return {}
    return {}
