from urllib.parse import urlsplit, urlunsplit


def mask_url(url: str) -> str:
    """Strip credentials from a connection URL so it can be logged.

    `postgresql://user:secret@db:5432/app` becomes `postgresql://***@db:5432/app`.
    """
    if not url or '@' not in url:
        return url
    parts = urlsplit(url)
    host = parts.netloc.rsplit('@', 1)[1]
    return urlunsplit((parts.scheme, f"***@{host}", parts.path, parts.query, parts.fragment))
