"""Literal decoding helpers used when unmasking obfuscated specifiers.

Mirrors the way Node.js itself would turn the encoded value back into text
(``Buffer.from(value, "hex")``, ``atob``, ``path.posix.join``) so the recovered
specifier matches what the analyzed code would actually load.
"""
import base64
import binascii
import math
import posixpath
import re
from typing import Optional, Union

# At least two bytes worth of digits, anything shorter is too ambiguous ("a", "be")
HEX_PATTERN = re.compile(r'^[0-9A-Fa-f]{4,}$')

_BASE64_JUNK = re.compile(r'[^A-Za-z0-9+/\-_]')
_URL_SAFE = str.maketrans('-_', '+/')


def is_hex(value) -> bool:
    """Check if a value is a string made only of hexadecimal digits."""
    return isinstance(value, str) and HEX_PATTERN.match(value) is not None


def hex_to_string(value: str) -> str:
    """Decode hex digits to text the way ``Buffer.from(value, 'hex')`` does.

    A trailing odd digit is dropped and invalid UTF-8 becomes U+FFFD.
    """
    even_length = len(value) - len(value) % 2
    return bytes.fromhex(value[:even_length]).decode('utf-8', errors='replace')


def base64_to_string(value: str) -> Optional[str]:
    """Decode a base64 payload leniently.

    Args:
        value: Encoded text, padding optional, URL-safe alphabet accepted

    Returns:
        Decoded text, or None if the payload cannot be decoded at all
    """
    cleaned = _BASE64_JUNK.sub('', value).translate(_URL_SAFE)
    cleaned += '=' * (-len(cleaned) % 4)

    try:
        return base64.b64decode(cleaned).decode('utf-8', errors='replace')
    except binascii.Error:
        return None


def posix_join(*parts: str) -> str:
    """Join path segments with ``path.posix.join`` semantics.

    Unlike ``posixpath.join`` an absolute segment does not discard what came
    before it, and the result is normalized.
    """
    joined = '/'.join(part for part in parts if part)
    if not joined:
        return '.'

    normalized = posixpath.normpath(joined)
    # POSIX keeps a leading '//', Node collapses it
    if normalized.startswith('//'):
        normalized = '/' + normalized.lstrip('/')
    if joined.endswith('/') and not normalized.endswith('/'):
        normalized += '/'

    return normalized


def format_number(value: Union[int, float]) -> str:
    """Render a number the way JavaScript string concatenation would."""
    if isinstance(value, float):
        if math.isnan(value):
            return 'NaN'
        if math.isinf(value):
            return 'Infinity' if value > 0 else '-Infinity'
        if value.is_integer():
            return str(int(value))
    return str(value)


def char_code_to_string(value: Union[int, float]) -> Optional[str]:
    """Convert a numeric char code like ``String.fromCharCode`` would, if valid."""
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if 0 <= value <= 0x10FFFF:
        return chr(value)
    return None
