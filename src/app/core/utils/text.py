"""Text processing utilities."""

import re
import unicodedata

from app.core.constants import MAX_SLUG_LENGTH


def generate_slug(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Derive a tenant slug from a display name.

    Accents are folded to ASCII, anything outside ``[a-z0-9_-]`` is dropped
    and runs of spaces or hyphens collapse to one hyphen. The result never
    starts or ends with a separator.

    Args:
        name: Display name
        max_length: Maximum length of the slug

    Returns:
        Slug usable in a database identifier, possibly empty

    Examples:
        >>> generate_slug("Acme Holding A.Ş.")
        'acme-holding-as'
        >>> generate_slug("  Hello! World@2024 ")
        'hello-world2024'
    """
    ascii_name = (
        unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    )
    slug = ascii_name.lower().strip()
    slug = re.sub(r"[^a-z0-9\s_-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug[:max_length].strip("-_")
