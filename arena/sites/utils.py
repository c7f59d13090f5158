from urllib.parse import quote, urlparse

DOMAIN_PROPERTY_PREFIX = "sc-domain:"
FAVICON_SERVICE = "https://www.google.com/s2/favicons"


def normalize_site_url(raw: str) -> str:
    """
    Search Console property identifiers come in two shapes:
      - URL-prefix properties: https://example.com/
      - Domain properties:     sc-domain:example.com
    The value is kept verbatim (it is what the Search Console API expects).
    """
    url = (raw or "").strip()
    if not url:
        raise ValueError("Site URL is required")

    if url.startswith(DOMAIN_PROPERTY_PREFIX):
        if not url[len(DOMAIN_PROPERTY_PREFIX):].strip():
            raise ValueError("Invalid domain property")
        return url

    p = urlparse(url)
    if p.scheme not in ("http", "https") or not p.hostname:
        raise ValueError("Invalid site URL")
    return url


def clean_domain(site_url: str) -> str:
    s = (site_url or "").strip()
    if s.startswith(DOMAIN_PROPERTY_PREFIX):
        s = s[len(DOMAIN_PROPERTY_PREFIX):]
    for scheme in ("https://", "http://"):
        if s.startswith(scheme):
            s = s[len(scheme):]
            break
    if s.startswith("www."):
        s = s[4:]
    return s.rstrip("/").lower()


def favicon_url(domain: str) -> str:
    host = domain.split("/", 1)[0]
    return f"{FAVICON_SERVICE}?domain={quote(host)}&sz=64"


def anonymous_placeholder(site_hash: str) -> str:
    return f"anonymous-{site_hash[:12]}"
