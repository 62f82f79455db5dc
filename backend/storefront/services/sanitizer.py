"""
Markup stripping for untrusted free text.

Every free-text field accepted from the public or admin forms passes through
strip_markup() before it is stored or placed in an outbound email.
"""
from bs4 import BeautifulSoup

# Elements whose content is never user-visible text
NON_TEXT_TAGS = ["script", "style", "textarea", "option", "noscript", "iframe", "template"]


def _strip_once(text: str) -> str:
    soup = BeautifulSoup(text, "html.parser")
    for element in soup(NON_TEXT_TAGS):
        element.decompose()
    return soup.get_text()


def strip_markup(value: str | None) -> str | None:
    """Return value with all HTML removed, as plain text.

    Entity-encoded markup ("&lt;b&gt;") decodes into real markup on each pass,
    so passes repeat until the text stops changing. A pass that changes the
    text always shortens it, which bounds the loop by the input length.
    """
    if value is None:
        return None

    text = value
    while True:
        stripped = _strip_once(text)
        if stripped == text:
            break
        if len(stripped) >= len(text):
            # Not converging: drop anything that could still open a tag
            text = stripped.replace("<", "").replace(">", "")
            break
        text = stripped
    return text.strip()


def sanitize_fields(data: dict, fields: list[str]) -> dict:
    """Strip markup from the named keys of data, leaving the rest untouched."""
    cleaned = dict(data)
    for field in fields:
        if field in cleaned:
            cleaned[field] = strip_markup(cleaned[field])
    return cleaned
