"""
Trade snapshot persistence.

The journal's documents live in a hosted document store.  For offline
analysis a user's trades are exported to a JSON file; this module
reads and writes those snapshots.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List


def load_documents(path: str, collection: str = "trades") -> List[Dict[str, Any]]:
    """Load a JSON snapshot of trade documents.

    Parameters
    ----------
    path : str
        Path to the JSON file.  It may hold a plain list of documents
        or an object with the list under `collection`.
    collection : str
        Key to read when the file holds an object.

    Returns
    -------
    list of dict
        The stored documents.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file holds neither a list nor an object with `collection`.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Snapshot not found: {file_path}")
    with file_path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get(collection)
    if not isinstance(data, list):
        raise ValueError(f"Snapshot {file_path} does not contain a list of {collection}")
    return data


def save_documents(path: str, documents: List[Dict[str, Any]], collection: str = "trades") -> None:
    """Write documents to a JSON snapshot under `collection`."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8") as fh:
        json.dump({collection: documents}, fh, ensure_ascii=False, indent=2, sort_keys=True, default=str)
