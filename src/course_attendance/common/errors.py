from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from ..core.exceptions import StorageError


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise store failures with the use case prefixed.

    Domain errors raised inside the block pass through unchanged.
    """

    try:
        yield
    except StorageError as e:
        raise StorageError(f"{action}: {e}") from e
