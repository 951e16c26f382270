class StorageUnavailable(Exception):
    """State document cannot be read, parsed, or written."""

    pass
