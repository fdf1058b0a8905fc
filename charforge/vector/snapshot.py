"""
Vector store snapshot persistence - one JSON file holding every record.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import List, Union

from ..core.errors import StoreNotFound
from .types import VectorRecord


def write_snapshot(path: Union[str, Path], records: List[VectorRecord]) -> Path:
    """
    Persist records as a JSON array.

    The file is written to a temporary sibling first and renamed into place,
    so readers never observe a partially written snapshot.

    Args:
        path: Destination snapshot file
        records: Records in store order

    Returns:
        The snapshot path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump([record.to_dict() for record in records], f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise

    return path


def read_snapshot(path: Union[str, Path]) -> List[VectorRecord]:
    """
    Load records from a snapshot file.

    Raises:
        StoreNotFound: If no snapshot has been built at this path
    """
    path = Path(path)
    if not path.exists():
        raise StoreNotFound(f"No vector store snapshot at {path}; run ingestion first", path=str(path))

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return [VectorRecord.from_dict(item) for item in data]
