"""
Test configuration

Settings come from S3_* environment variables. When S3_CONFIG_FILE names
a YAML file, its keys override the environment.
"""

import os
from typing import Any, Dict

import yaml

FULL_MODE = "full"
QUICK_MODE = "quick"


def load_config(environ=None) -> Dict[str, Any]:
    """
    Build the configuration dictionary used by the test fixtures

    Args:
        environ: mapping to read variables from, defaults to os.environ
    """
    env = os.environ if environ is None else environ

    def get(name, default=None):
        return env.get(name, default)

    def get_bool(name, default):
        return str(get(name, default)).lower() in ("1", "true", "yes", "on")

    seed = get("S3_TEST_SEED")
    config = {
        "s3_endpoint": get("S3_ENDPOINT", "http://localhost:9000"),
        "s3_access_key": get("S3_ACCESS_KEY", "minioadmin"),
        "s3_secret_key": get("S3_SECRET_KEY", "minioadmin"),
        "s3_region": get("S3_REGION", "us-east-1"),
        "s3_bucket_prefix": get("S3_BUCKET_PREFIX", "s3func"),
        "verify_ssl": get_bool("S3_VERIFY_SSL", "false"),
        "enable_kms": get_bool("S3_ENABLE_KMS", "false"),
        "kms_key_id": get("S3_KMS_KEY_ID", "my-minio-key"),
        "run_on_fail": get_bool("S3_RUN_ON_FAIL", "false"),
        "data_dir": get("S3_DATA_DIR") or None,
        "mode": get("S3_TEST_MODE", QUICK_MODE).lower(),
        "seed": int(seed) if seed else None,
        "results_log": get("S3_RESULTS_LOG") or None,
    }

    config_file = get("S3_CONFIG_FILE")
    if config_file:
        with open(config_file) as f:
            overrides = yaml.safe_load(f) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"{config_file}: expected a mapping, got {type(overrides).__name__}")
        config.update(overrides)

    return config


def is_full_mode(config: Dict[str, Any]) -> bool:
    return config.get("mode") == FULL_MODE


def use_ssl(config: Dict[str, Any]) -> bool:
    return config["s3_endpoint"].startswith("https")
