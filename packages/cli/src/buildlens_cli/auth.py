"""GitHub token lookup for the Gist store.

Sources, first hit wins:
  1. GITHUB_TOKEN, then GH_TOKEN environment variables
  2. the token of an authenticated GitHub CLI session (`gh auth token`)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def _gh_cli_token() -> str | None:
    try:
        proc = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("gh CLI unavailable, no session token.")
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip() or None


def resolve_github_token() -> str | None:
    """Return a GitHub token, or None when no source has one. Never raises."""
    for name in _TOKEN_ENV_VARS:
        if os.environ.get(name):
            return os.environ[name]

    token = _gh_cli_token()
    if token:
        logger.debug("Using GitHub token from gh CLI session.")
    return token
