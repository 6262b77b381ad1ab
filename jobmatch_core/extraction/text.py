"""Text normalization for raw job postings."""
import re

from bs4 import BeautifulSoup

_BLOCK_TAGS = ["br", "p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "tr", "ul", "ol"]
_DROPPED_TAGS = ["script", "style"]
# Basic punctuation, bullet glyphs and the characters needed for dates,
# e-mail addresses, "C#" and "R&D"
_DISALLOWED_RE = re.compile(r"[^\w\s\-.,;:!?$%()\[\]•*+/@&#']")
_HORIZONTAL_SPACE_RE = re.compile(r"[^\S\n]+")


def html_to_text(html: str) -> str:
    """Flatten HTML to text, one line per block element.

    List items become "• " bullets and entities are decoded. Plain text
    passes through unchanged apart from entity decoding.
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(_DROPPED_TAGS):
        tag.decompose()
    for item in soup.find_all("li"):
        item.insert_before("\n•")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_before("\n")
        tag.insert_after("\n")

    return soup.get_text(" ")


def normalize_text(text: str) -> str:
    """Clean raw posting text while keeping its line structure.

    HTML is flattened to text, whitespace inside a line is collapsed and
    runs of blank lines are reduced to a single blank line.

    Args:
        text: Raw posting text or HTML

    Returns:
        Normalized text
    """
    text = html_to_text(text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _DISALLOWED_RE.sub(" ", text)

    lines = []
    previous_blank = True
    for line in text.split("\n"):
        line = _HORIZONTAL_SPACE_RE.sub(" ", line).strip()
        if line:
            lines.append(line)
            previous_blank = False
        elif not previous_blank:
            lines.append("")
            previous_blank = True

    return "\n".join(lines).strip()
