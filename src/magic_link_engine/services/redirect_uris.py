"""Redirect URI checks against a client's registration."""

from urllib.parse import urlsplit

from magic_link_engine.models.client import ClientORM


def verify_redirect_uri(redirect_uri: str | None, client: ClientORM) -> str | None:
    """
    Return ``redirect_uri`` if the client registered it, otherwise None.

    A registered entry ending in ``*`` matches any URI starting with the text
    before the star. URIs carrying a fragment are never accepted.
    """
    if not redirect_uri or not redirect_uri.strip():
        return None
    redirect_uri = redirect_uri.strip()

    parts = urlsplit(redirect_uri)
    if parts.fragment or "#" in redirect_uri:
        return None
    if not parts.scheme or not parts.netloc:
        return None

    for registered in client.redirect_uris or []:
        if registered.endswith("*"):
            if redirect_uri.startswith(registered[:-1]):
                return redirect_uri
        elif redirect_uri == registered:
            return redirect_uri
    return None


def default_redirect_uri(client: ClientORM) -> str | None:
    """The client's own landing URL, or its first exact registered redirect URI."""
    if client.base_url:
        return client.base_url
    for registered in client.redirect_uris or []:
        if not registered.endswith("*"):
            return registered
    return None
