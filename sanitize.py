import re
from typing import Any, Optional

# Script and style bodies go along with their tags
SCRIPT_STYLE_PATTERN = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
TAG_PATTERN = re.compile(r"</?[A-Za-z][^>]*>")


def strip_markup(value: Any) -> Optional[str]:
    """Remove HTML tags and surrounding whitespace. Non-strings become None."""
    if not isinstance(value, str):
        return None
    value = SCRIPT_STYLE_PATTERN.sub("", value)
    return TAG_PATTERN.sub("", value).strip()
