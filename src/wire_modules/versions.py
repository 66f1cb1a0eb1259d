"""Module version formatting and comparison.

Two version encodings are in use:
- Legacy packed integers: 100 means 1.0.0, 123 means 1.2.3
- Dotted strings: "1.2.3"

Packed integers are compared as plain integers when both sides are packed.
Anything else is normalized to "X.Y.Z" and compared semantically, or by its
numeric dot components when it still isn't a valid PEP 440 version.
"""

import logging
import operator as op
import re

from packaging.version import InvalidVersion
from packaging.version import Version

logger = logging.getLogger(__name__)

# Search order matters: "<=" must be found before "<"
REQUIRE_OPERATORS = ("<=", ">=", "<", ">", "!=", "=")

_COMPARE = {
    "=": op.eq,
    ">": op.gt,
    "<": op.lt,
    ">=": op.ge,
    "<=": op.le,
    "!=": op.ne,
}


def _is_digits(value: object) -> bool:
    text = str(value)
    return text.isascii() and text.isdigit()


def format_version(version: int | str) -> str:
    """Format a version as a dotted "X.Y.Z" string.

    Args:
        version: Packed integer (e.g. 123) or dotted string (e.g. "1.2")

    Returns:
        Dotted version string

    Examples:
        >>> format_version(100)
        '1.0.0'
        >>> format_version(5)
        '0.0.5'
        >>> format_version("2.0")
        '2.0.0'
        >>> format_version("v1.2.3-beta")
        '1.2.3'
    """
    version = str(version).strip()

    if not _is_digits(version.replace(".", "")):
        version = re.sub(r"[^\d.]", "", version)

    if _is_digits(version):
        # Packed: left pad to 3 digits, anything past the 3rd digit is the patch
        version = version.rjust(3, "0")
        version = f"{version[0]}.{version[1]}.{version[2:]}"
    elif "." in version and version.count(".") == 1:
        if re.fullmatch(r"\d\.\d", version):
            version += ".0"

    return version or "0.0.0"


def _version_key(value: int | str) -> tuple[int, ...]:
    """Numeric dot components of a version that isn't PEP 440, e.g. "1..2" -> (1, 2)."""
    parts = re.sub(r"[^\d.]", "", str(value)).split(".")
    return tuple(int(p) for p in parts if p) or (0,)


def version_compare(current: int | str, required: int | str, operator: str) -> bool:
    """Compare a current version against a required one.

    Args:
        current: Version that is present (packed int or dotted string)
        required: Version being asked for
        operator: One of =, >, <, >=, <=, !=

    Returns:
        True if "current <operator> required" holds, False otherwise
        (including for an unknown operator)
    """
    compare = _COMPARE.get(operator)
    if compare is None:
        logger.debug(f"Unknown version operator: {operator!r}")
        return False

    if _is_digits(current) and _is_digits(required):
        return compare(int(current), int(required))

    if str(current).count(".") < 2:
        current = format_version(current)
    if str(required).count(".") < 2:
        required = format_version(required)

    try:
        return compare(Version(str(current)), Version(str(required)))
    except InvalidVersion:
        logger.debug(f"Comparing non-standard versions {current!r} and {required!r} numerically")

    current_key = _version_key(current)
    required_key = _version_key(required)
    width = max(len(current_key), len(required_key))
    current_key += (0,) * (width - len(current_key))
    required_key += (0,) * (width - len(required_key))
    return compare(current_key, required_key)


def extract_operator_version(require: str) -> tuple[str, str, int | str | None]:
    """Split a requirement string into (name, operator, version).

    The operator must not be the first character. A version made only of
    digits is returned as an int (packed version).

    Examples:
        >>> extract_operator_version("Bar>=1.0.0")
        ('Bar', '>=', '1.0.0')
        >>> extract_operator_version("Bar=100")
        ('Bar', '=', 100)
        >>> extract_operator_version("Bar")
        ('Bar', '', None)
    """
    require = require.strip()
    if require.isalnum():
        return require, "", None

    found = ""
    for candidate in REQUIRE_OPERATORS:
        if require.find(candidate) > 0:
            found = candidate
            break

    if not found:
        return require, "", None

    name, version = require.split(found, 1)
    name = name.strip()
    version = version.strip()
    if _is_digits(version):
        return name, found, int(version)
    return name, found, version or None
