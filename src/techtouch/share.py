"""Share text helpers for news and job items."""

from urllib.parse import quote

SHARE_HASHTAG = "#Techtouch"


def build_share_text(title: str, description: str, url: str) -> str:
    """Compose the text body used when sharing an item.

    Args:
        title: Item title.
        description: Item body; multi-line descriptions are kept as-is.
        url: Official link for the item.

    Returns:
        The share body with title, description, link and hashtag.
    """
    return f"🔹 {title}\n\n{description}\n\n🔗 Official link: {url}\n\n{SHARE_HASHTAG}"


def share_url(platform: str, text: str, url: str) -> str:
    """Build a platform share link.

    Raises:
        ValueError: If the platform has no share endpoint.
    """
    if platform == "telegram":
        return f"https://t.me/share/url?url={quote(url, safe='')}&text={quote(text, safe='')}"
    if platform == "facebook":
        return f"https://www.facebook.com/sharer/sharer.php?u={quote(url, safe='')}"
    msg = f"Unknown share platform: {platform}"
    raise ValueError(msg)
