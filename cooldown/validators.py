# SPDX-License-Identifier: GPL-3.0-or-later
#
# Copyright (C) 2025 Mark Sholund
#
# This file is part of the Cooldown Proxy project.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

import re
from typing import Optional


class ValidationError(ValueError):
    """Custom exception for validation failures"""
    pass


def validate_module_path(module: str) -> bool:
    """
    Validate a (case-escaped) Go module path as it appears in proxy URLs.

    Rules:
    - Slash-separated elements, e.g. golang.org/x/text
    - Letters, numbers, dots, hyphens, underscores, tildes allowed
    - '!' allowed (proxy case-encoding: github.com/!azure/...)
    - No empty elements, no leading or trailing slash
    - No path traversal sequences or null bytes
    - Length must be <= 1024 characters

    Args:
        module: Module path to validate

    Returns:
        True if valid, False otherwise

    Examples:
        >>> validate_module_path("golang.org/x/text")
        True
        >>> validate_module_path("github.com/!burnt!sushi/toml")
        True
        >>> validate_module_path("../../etc/passwd")
        False
    """
    if not module or len(module) > 1024:
        return False

    # Check for path traversal and dangerous characters
    if '..' in module or module.startswith('/') or '\\' in module or '\0' in module:
        return False

    if module.endswith('/') or '//' in module:
        return False

    pattern = r'^[a-zA-Z0-9._~!/-]+$'
    return bool(re.match(pattern, module))


def validate_version_string(version: str) -> bool:
    """
    Validate version string for Go module versions.

    Rules:
    - Alphanumeric, dots, hyphens, underscores, plus signs, tildes allowed
    - '!' allowed (proxy case-encoding)
    - Length must be <= 100 characters
    - No path traversal characters

    Args:
        version: Version string to validate

    Returns:
        True if valid, False otherwise

    Examples:
        >>> validate_version_string("v1.2.3")
        True
        >>> validate_version_string("v2.0.0+incompatible")
        True
        >>> validate_version_string("v0.0.0-20240101000000-abcdef123456")
        True
        >>> validate_version_string("../../../etc")
        False
    """
    if not version or len(version) > 100:
        return False

    # Check for path traversal
    if '..' in version or '/' in version or '\\' in version or '\0' in version:
        return False

    pattern = r'^[a-zA-Z0-9._+~!-]+$'
    return bool(re.match(pattern, version))


def ensure_valid_target(module: str, version: Optional[str] = None) -> None:
    """
    Raise ValidationError unless the module (and version, when given) are valid.
    """
    if not validate_module_path(module):
        raise ValidationError(f"Invalid module path: {module}")
    if version is not None and not validate_version_string(version):
        raise ValidationError(f"Invalid version string: {version}")
