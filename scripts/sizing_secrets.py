#!/usr/bin/env python3
"""
ABOUTME: Resolves the vCenter password used for inventory collection.
ABOUTME: Order: VCF_VCENTER_PASSWORD, config/sizing-secrets.yaml, config file value, prompt.
"""

import getpass
import os
import sys
from pathlib import Path
from typing import Optional

import yaml

VCENTER_PASSWORD_ENV = "VCF_VCENTER_PASSWORD"
SECRETS_FILE = Path("config") / "sizing-secrets.yaml"


def _password_from_secrets_file(secrets_file: Path) -> Optional[str]:
    if not secrets_file.exists():
        return None

    try:
        with open(secrets_file, encoding="utf-8") as f:
            secrets = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"WARNING: Failed to load secrets file: {e}", file=sys.stderr)
        return None

    return secrets.get("vcenter_password") if isinstance(secrets, dict) else None


def get_vcenter_password(project_dir: Path, config_value: Optional[str] = None) -> str:
    """Return the vCenter password from the first source that has one, prompting last."""
    return (
        os.environ.get(VCENTER_PASSWORD_ENV)
        or _password_from_secrets_file(project_dir / SECRETS_FILE)
        or config_value
        or getpass.getpass("Enter vcenter password: ")
    )
