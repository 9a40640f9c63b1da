import re

QUOTE_CHARS = ("\"", "'")

_WHITESPACE = re.compile(r"\s+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")

# Markup-safe entities for literal quotes
QUOTE_ENTITIES = (
    ("\"", "&quot;"),
    ("'", "&#x27;"),
)


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def clean_content(content: str) -> str:
    """
    Clean one message body pulled out of a spreadsheet export.

    Steps run in order:
    - trim, then drop one matching pair of quotes wrapping the whole text
    - un-escape CSV doubled quotes ("" -> ")
    - collapse whitespace runs (before escaping, so nothing gets escaped twice)
    - escape literal quotes as HTML entities
    - drop control characters

    Cleaning an already cleaned string returns it unchanged.
    """
    if not content:
        return ""

    cleaned = str(content).strip()

    if len(cleaned) >= 2 and cleaned[0] in QUOTE_CHARS and cleaned[-1] == cleaned[0]:
        cleaned = cleaned[1:-1]

    cleaned = cleaned.replace("\"\"", "\"")
    cleaned = _collapse(cleaned)

    for char, entity in QUOTE_ENTITIES:
        cleaned = cleaned.replace(char, entity)

    # removing a control char can leave two spaces side by side
    cleaned = _collapse(_CONTROL_CHARS.sub("", cleaned))
    return cleaned
