"""Path, size and usage queries for embedded SQLite stores.

Every public query returns an :class:`outcome.Outcome`; failures are logged
and described in the outcome instead of being raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from information_model import InformationModel, SQLiteStore
from logger import LogCategory, get_logger
from outcome import Outcome

T = TypeVar("T")

DATABASE_SUFFIX = ".sqlite"
WAL_SUFFIX = "-wal"
# decimal units; use 1024 for kibibytes
BYTES_PER_KILOBYTE = 1000


class EmbeddedDatabaseError(Exception):
    """Raised when a store cannot be located on disk."""


@dataclass(frozen=True)
class DatabaseSize:
    bytes: int
    kilobytes: int
    megabytes: int

    @classmethod
    def from_bytes(cls, size: int) -> "DatabaseSize":
        kilobytes = size // BYTES_PER_KILOBYTE
        return cls(bytes=size, kilobytes=kilobytes, megabytes=kilobytes // BYTES_PER_KILOBYTE)


def get_store(model: InformationModel, store_node_id: Optional[str]) -> SQLiteStore:
    """Look up an on-disk SQLite store in the model."""
    store = model.get(store_node_id, SQLiteStore)
    if store is None:
        raise EmbeddedDatabaseError(
            "SQLite store not found, make sure the target node is an embedded database"
        )
    if store.in_memory:
        raise EmbeddedDatabaseError(
            "SQLite store is in memory, the database file is not stored on disk"
        )
    return store


def database_filename(store: SQLiteStore) -> str:
    """File name of the store; the node id without dashes when none is set."""
    name = store.filename or store.node_id.replace("-", "")
    return name + DATABASE_SUFFIX


def _query(operation: str, query: Callable[[], T]) -> Outcome[T]:
    try:
        return Outcome.success(query())
    except (EmbeddedDatabaseError, OSError) as exc:
        get_logger().error(
            f"Failed to {operation}: {exc}",
            category=LogCategory.STORAGE,
            operation=operation,
        )
        return Outcome.failure(f"Failed to {operation}: {exc}")


def relative_database_path(model: InformationModel, store_node_id: Optional[str]) -> Outcome[str]:
    """Path of the database file relative to the application directory."""
    return _query(
        "get the relative path of the embedded database",
        lambda: database_filename(get_store(model, store_node_id)),
    )


def _absolute_path(model: InformationModel, store_node_id: Optional[str], application_dir: Path) -> Path:
    return Path(application_dir).resolve() / database_filename(get_store(model, store_node_id))


def absolute_database_path(
    model: InformationModel, store_node_id: Optional[str], application_dir: Path
) -> Outcome[Path]:
    return _query(
        "get the absolute path of the embedded database",
        lambda: _absolute_path(model, store_node_id, application_dir),
    )


def database_size(
    model: InformationModel, store_node_id: Optional[str], application_dir: Path
) -> Outcome[DatabaseSize]:
    """Size of the database file.

    Read from the file system, so it can lag behind while the database is
    being written.
    """
    return _query(
        "get the size of the embedded database",
        lambda: DatabaseSize.from_bytes(
            _absolute_path(model, store_node_id, application_dir).stat().st_size
        ),
    )


def is_database_in_use(
    model: InformationModel, store_node_id: Optional[str], application_dir: Path
) -> Outcome[bool]:
    """Whether the database has an active write-ahead log next to it."""

    def check() -> bool:
        path = _absolute_path(model, store_node_id, application_dir)
        return path.with_name(path.name + WAL_SUFFIX).exists()

    return _query("check if the embedded database is in use", check)
