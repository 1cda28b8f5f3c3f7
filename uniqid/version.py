"""
Package version. $UNIQID_VERSION overrides the base version for builds.
"""

from __future__ import annotations

import os

# Bump this when making a release.
_BASE_SEMVER = "0.1.0"

__version__ = os.environ.get("UNIQID_VERSION") or _BASE_SEMVER
