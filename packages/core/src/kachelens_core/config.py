import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "cache_key_prefix": "kache",
    "lockfile_pattern": "**/Cargo.lock",
    "github_cache": True,
    "cache_archive_dir": None,  # directory holding <key>.tar.gz snapshots for the archive backend
    "s3_bucket": None,  # set to enable S3 sync via `kache sync`
    "sync": True,  # pull from S3 at setup; push always happens when S3 is configured
    "manifest_key": None,
    "cache_dir": None,  # None = KACHE_CACHE_DIR or kache's platform default
    "state_path": ".kachelens-state.json",
    "comment": True,  # post the sticky PR comment
}


def load_config(config_path: str = ".kachelens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .kachelens.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Values exported by the action's setup step
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["tool_version"] = os.environ.get("KACHE_VERSION") or "unknown"
    if not config.get("cache_dir"):
        config["cache_dir"] = os.environ.get("KACHE_CACHE_DIR")
    if not config.get("s3_bucket"):
        config["s3_bucket"] = os.environ.get("KACHE_S3_BUCKET")

    return config
