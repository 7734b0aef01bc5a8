"""
Masked display of secret values.

Pattern: ``{prefix}*****{suffix}``, e.g. ``ghp_*****CDEF``.
"""
import re

MASK = "*****"
MIN_MASKABLE_LENGTH = 8
SUFFIX_LENGTH = 4

# ghp_, sk_live_, pk_test_, rk_prod_ ...
_PREFIX_PATTERN = re.compile(r"^([a-z]{2,3}_(?:[a-z]+_)?)", re.IGNORECASE)

# live payment keys show one extra trailing character
_WIDE_SUFFIX_PREFIXES = {"sk_live_": 5}


def detect_prefix(value: str) -> str:
    """Return the credential-style prefix of ``value`` or an empty string."""
    match = _PREFIX_PATTERN.match(value)
    return match.group(1) if match else ""


def mask(value: str) -> str:
    """Generate the masked display for a secret value.

    Values shorter than 8 characters are fully masked. Longer values keep
    their recognized prefix and the last 4 characters (5 for ``sk_live_``).
    """
    if not value:
        return ""
    if len(value) < MIN_MASKABLE_LENGTH:
        return MASK
    prefix = detect_prefix(value)
    suffix_length = _WIDE_SUFFIX_PREFIXES.get(prefix, SUFFIX_LENGTH)
    # tail is sliced from the whole value, not from what follows the prefix
    return f"{prefix}{MASK}{value[-suffix_length:]}"
