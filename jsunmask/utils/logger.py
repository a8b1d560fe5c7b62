"""Terminal-safe output helpers with an ASCII fallback for report icons.

Scan reports use a few Unicode markers; terminals without UTF-8 support
(legacy Windows consoles, some CI runners) get ASCII replacements instead of
a UnicodeEncodeError halfway through a report.
"""
import locale
import sys

# Unicode to ASCII icon mapping
ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '🔍': '[scan]',
    '📦': '[pkg]',
    '→': '->',
    '…': '...',
    '•': '*',
}

SEVERITY_ICONS = {
    'Critical': '✗',
    'Warning': '⚠',
    'Information': '•',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except Exception:
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 output."""
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if the terminal needs it.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Text safe for the current terminal
    """
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)

    # Anything else the terminal cannot encode (e.g. decoded payloads)
    encoding = detect_terminal_encoding()
    try:
        return sanitized.encode(encoding, errors='replace').decode(encoding)
    except LookupError:
        return sanitized.encode('ascii', errors='replace').decode('ascii')


def severity_icon(severity: str) -> str:
    return SEVERITY_ICONS.get(severity, '•')
