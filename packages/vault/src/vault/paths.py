"""KVv2 path namespaces."""

METADATA_SEGMENT = "metadata"
DATA_SEGMENT = "data"


def to_data_path(path: str) -> str:
    """
    Map a metadata path to its data path.

    Only segment 1 is substituted, every other segment is kept as is.
    Paths whose segment 1 is not ``metadata`` are returned unchanged.

    Args:
        path: Metadata path, e.g. ``kv/metadata/app/db``

    Returns:
        Data path, e.g. ``kv/data/app/db``
    """
    parts = path.split("/")
    if len(parts) >= 2 and parts[1] == METADATA_SEGMENT:
        parts[1] = DATA_SEGMENT
        return "/".join(parts)
    return path
