"""Version string handling.

Versions are opaque strings here: no ordering or semver parsing, only the
normalization needed to accept git tags as targets.
"""

from __future__ import annotations


def normalize_version(version_str: str) -> str:
    """Strip a single leading 'v' so a git tag can be passed as the target.

    Examples:
        "v1.2.3" → "1.2.3"
        "1.2.3" → "1.2.3"
        "v" → "v"
    """
    if len(version_str) > 1 and version_str.startswith("v"):
        return version_str[1:]
    return version_str
