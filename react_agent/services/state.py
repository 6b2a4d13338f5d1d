"""Key/value state store with a persisted subset."""

import json
import os
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from react_agent.exceptions import StateStoreError
from react_agent.utils.logging import get_logger

logger = get_logger(__name__)


class StateKey[T]:
    """Typed handle into a StateStore.

    Keys compare by identity: two key objects are distinct entries even when they
    share a name. Persistent keys are written to the state file under
    `storage_name`, which includes the value type so same-named keys of different
    types never overwrite each other on disk.
    """

    def __init__(
        self,
        name: str,
        value_type: type[T] | Any,
        default_factory: Callable[[], T],
        persistent: bool = False,
    ):
        self.name = name
        self.value_type = value_type
        self.default_factory = default_factory
        self.persistent = persistent
        self.adapter: TypeAdapter[T] = TypeAdapter(value_type)

    @classmethod
    def transient(cls, name: str, value_type: type[T] | Any, default_factory: Callable[[], T]) -> "StateKey[T]":
        return cls(name, value_type, default_factory, persistent=False)

    @classmethod
    def durable(cls, name: str, value_type: type[T] | Any, default_factory: Callable[[], T]) -> "StateKey[T]":
        return cls(name, value_type, default_factory, persistent=True)

    @property
    def storage_name(self) -> str:
        type_name = getattr(self.value_type, "__name__", None)
        if type_name is None or getattr(self.value_type, "__args__", None):
            type_name = repr(self.value_type)
        return f"{self.name}:{type_name}"

    def encode(self, value: T) -> str:
        return self.adapter.dump_json(value).decode()

    def decode(self, raw: str) -> T:
        return self.adapter.validate_json(raw)

    def __repr__(self) -> str:
        kind = "persistent" if self.persistent else "transient"
        return f"StateKey({self.storage_name!r}, {kind})"


class StateStore:
    """Per-session mapping from StateKey to value.

    Owned by a single agent; not safe for concurrent mutation.
    """

    def __init__(self):
        self._values: dict[StateKey[Any], Any] = {}

    def get[T](self, key: StateKey[T]) -> T:
        """Return the stored value, materializing the key's default on first access."""
        if key not in self._values:
            self._values[key] = key.default_factory()
        return self._values[key]

    def set[T](self, key: StateKey[T], value: T) -> None:
        self._values[key] = value

    def contains(self, key: StateKey[Any]) -> bool:
        return key in self._values

    def keys(self) -> list[StateKey[Any]]:
        return list(self._values)

    def save_to_file(self, path: str | Path) -> int:
        """Write every persistent key currently in the store to `path`.

        The file is replaced atomically, so an interrupted save leaves the previous
        file intact.

        Returns:
            Number of entries written

        Raises:
            StateStoreError: If a value cannot be encoded or the file cannot be written
        """
        target = Path(path)

        try:
            entries = {key.storage_name: key.encode(value) for key, value in self._values.items() if key.persistent}
        except PydanticSerializationError as e:
            raise StateStoreError(f"Failed to encode state for {target}: {e}") from e

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(entries, handle, indent=2, sort_keys=True)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StateStoreError(f"Failed to save state to {target}: {e}") from e

        logger.debug(f"Saved {len(entries)} state entries to {target}")
        return len(entries)

    def load_from_file(self, path: str | Path, known_keys: Iterable[StateKey[Any]]) -> int:
        """Load persisted values for the given keys from `path`.

        A missing file is treated as a first run. Entries that match no known
        persistent key are ignored, and an entry that fails to decode is logged
        and skipped without affecting the others.

        Returns:
            Number of entries loaded

        Raises:
            StateStoreError: If the file exists but cannot be read or is not a JSON object
        """
        source = Path(path)
        if not source.exists():
            logger.debug(f"No state file at {source}, starting fresh")
            return 0

        try:
            data = json.loads(source.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StateStoreError(f"Failed to read state from {source}: {e}") from e

        if not isinstance(data, dict):
            raise StateStoreError(f"State file {source} does not contain a JSON object")

        by_name = {key.storage_name: key for key in known_keys if key.persistent}
        loaded = 0

        for name, raw in data.items():
            key = by_name.get(name)
            if key is None:
                logger.debug(f"Ignoring unknown state entry {name!r}")
                continue

            if not isinstance(raw, str):
                logger.warning(f"Skipping state entry {name!r}: expected a JSON-encoded string")
                continue

            try:
                self._values[key] = key.decode(raw)
            except ValidationError as e:
                logger.warning(f"Skipping state entry {name!r}: {e}")
                continue

            loaded += 1

        logger.debug(f"Loaded {loaded} state entries from {source}")
        return loaded
