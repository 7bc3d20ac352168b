"""PEP 508 dependency string handling.

Provides functions for reading the name and pinned version out of a
dependency string, and for rewriting it to an exact pin.
"""

from __future__ import annotations

from packaging.requirements import Requirement
from packaging.utils import canonicalize_name


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def dep_version_constraint(dep_str: str) -> str | None:
    """Return the version a dependency string pins, if it pins one.

    A single ``==`` specifier yields its bare version; any other specifier
    set is returned verbatim so it never equals a plain version string.
    No specifier at all means the dependency is unpinned.

    Examples:
        "pkg==1.2.3" → "1.2.3"
        "pkg>=1.0,<2" → "<2,>=1.0"
        "pkg" → None
    """
    specifier = Requirement(dep_str).specifier
    if not specifier:
        return None
    specs = list(specifier)
    if len(specs) == 1 and specs[0].operator == "==":
        return specs[0].version
    return str(specifier)


def pin_dep(dep_str: str, version: str) -> str:
    """Pin a PEP 508 dependency to an exact version.

    Preserves extras and environment markers, but replaces the version
    specifier with an exact pin.

    Examples:
        pin_dep("requests>=2.0", "2.31.0") → "requests==2.31.0"
        pin_dep("pkg[b,a]~=1.0", "1.5.0") → "pkg[a,b]==1.5.0"
        pin_dep('pkg==1.0; python_version>"3.9"', "2.0") → 'pkg==2.0; python_version > "3.9"'
    """
    req = Requirement(dep_str)
    # Sort extras alphabetically for consistent output
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}=={version}{marker}"
