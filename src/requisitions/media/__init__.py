"""Media catalog registry: where proof-of-stage attachments are looked up.

The default catalog reads the media references recorded on the order
itself. Deployments that keep uploads in an external store can install
their own ``MediaCatalog`` at startup.
"""

from requisitions.media.catalog import MediaCatalog

_catalog: MediaCatalog | None = None


def get_media_catalog() -> MediaCatalog:
    """Return the installed media catalog, defaulting to the recorded one."""
    global _catalog
    if _catalog is None:
        from requisitions.media.recorded import RecordedMediaCatalog

        _catalog = RecordedMediaCatalog()
    return _catalog


def install_media_catalog(catalog: MediaCatalog) -> None:
    global _catalog
    _catalog = catalog


def reset_media_catalog() -> None:
    """Drop the installed catalog (useful for testing)."""
    global _catalog
    _catalog = None
