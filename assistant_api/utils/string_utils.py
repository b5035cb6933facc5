import re
from typing import Optional

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup

TAG_PATTERN = re.compile(r'<[^>]*>')


def clean_text(text: str) -> str:
    return ' '.join(text.split())


def strip_markup(text: Optional[str]) -> str:
    if not text:
        return ""
    if "<" not in text:
        return clean_text(text)
    try:
        soup = BeautifulSoup(text, 'html.parser')
    except ParserRejectedMarkup:
        # html.parser rejects fragments such as "<![ x"; drop tag-like runs instead.
        return clean_text(TAG_PATTERN.sub(' ', text))
    return clean_text(soup.get_text())


def truncate_with_ellipsis(text: str, max_length: int) -> str:
    # The ellipsis is appended past max_length, not counted within it.
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def slugify(value: Optional[str], default: str, max_length: int = 80) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', str(value or '').lower()).strip('-')
    return slug[:max_length] or default
