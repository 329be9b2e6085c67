"""
Key-value storage for enrolled face descriptors.

Descriptors are stored as a JSON string under a single key, the same shape
the enrollment page writes: an array of fixed-length numeric vectors.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from .logger import get_logger

logger = get_logger(__name__)


class EnrollmentDataError(ValueError):
    """Raised when persisted enrolled descriptors cannot be parsed."""


class KeyValueStore:
    """String key-value store persisted as a single JSON file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise EnrollmentDataError(f"Store {self.path} does not contain a JSON object")
        return data

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string for ``key`` or None."""
        try:
            return self._read().get(key)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise EnrollmentDataError(f"Store {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise EnrollmentDataError(f"Store {self.path} could not be read: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, keeping other keys."""
        try:
            data = self._read()
        except (json.JSONDecodeError, UnicodeDecodeError, EnrollmentDataError):
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)


def parse_enrolled_embeddings(raw: str) -> np.ndarray:
    """
    Parse a JSON array of descriptors into an (N, D) float array.

    Raises:
        EnrollmentDataError: on malformed JSON, ragged or non-numeric vectors
    """
    try:
        parsed = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise EnrollmentDataError(f"Enrolled descriptors are not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise EnrollmentDataError("Enrolled descriptors must be a JSON array")
    if not parsed:
        return np.empty((0, 0), dtype=np.float32)

    try:
        embeddings = np.asarray(parsed, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise EnrollmentDataError(f"Enrolled descriptors are not numeric vectors: {e}") from e

    if embeddings.ndim != 2 or embeddings.shape[1] == 0:
        raise EnrollmentDataError("Enrolled descriptors must be fixed-length vectors")
    return embeddings


def load_enrolled_embeddings(store: KeyValueStore, key: str) -> Optional[np.ndarray]:
    """
    Load enrolled descriptors from ``store``.

    Returns:
        (N, D) array, or None when nothing has been enrolled
    """
    raw = store.get_item(key)
    if raw is None:
        return None
    embeddings = parse_enrolled_embeddings(raw)
    logger.info(f"Enrolled face descriptors loaded: {len(embeddings)}")
    return embeddings


def save_enrolled_embeddings(store: KeyValueStore, key: str,
                             embeddings: Sequence[Sequence[float]]) -> None:
    """Persist descriptors as a JSON array of plain float lists."""
    vectors: List[List[float]] = [np.asarray(e, dtype=np.float64).tolist() for e in embeddings]
    store.set_item(key, json.dumps(vectors))
    logger.info(f"Saved {len(vectors)} enrolled face descriptors")
