"""
Options storage for request-control.

The engine reads the whole options snapshot from a storage and rebuilds its
listeners whenever the storage reports a change.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from request_control.events import AsyncEventEmitter, EventType, StorageChangedEvent
from request_control.interfaces import BaseOptionsStorage
from request_control.models import Options

from .loader import load_options_file, save_options_file

logger = logging.getLogger(__name__)


class _ChangeNotifyingStorage(BaseOptionsStorage):
    def __init__(self) -> None:
        self._events = AsyncEventEmitter()

    def on_changed(self, handler: Callable[..., Any]) -> None:
        self._events.on(EventType.STORAGE_CHANGED, handler)

    def off_changed(self, handler: Callable[..., Any]) -> None:
        self._events.off(EventType.STORAGE_CHANGED, handler)

    async def _changed(self, changes: dict[str, Any]) -> None:
        await self._events.emit(StorageChangedEvent(changes=changes))


class MemoryOptionsStorage(_ChangeNotifyingStorage):
    """Options kept in memory.

    Example:
        storage = MemoryOptionsStorage(Options(rules=[...]))
        storage.on_changed(handler)
        await storage.set(disabled=True)
    """

    def __init__(self, options: Optional[Options] = None) -> None:
        super().__init__()
        self._options = options or Options()

    async def get(self) -> Options:
        return self._options.model_copy(deep=True)

    async def set(self, **changes: Any) -> None:
        """Change top-level options and notify subscribers."""
        data = self._options.model_dump(by_alias=True)
        data.update(changes)
        self._options = Options.model_validate(data)
        await self._changed(changes)


class FileOptionsStorage(_ChangeNotifyingStorage):
    """Options read from a JSON, YAML or TOML file on every ``get``.

    Call ``reload`` after the file changed to notify subscribers.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def get(self) -> Options:
        return load_options_file(self._path)

    async def set(self, options: Options) -> None:
        """Write a new snapshot and notify subscribers."""
        save_options_file(options, self._path)
        await self._changed({"options": str(self._path)})

    async def reload(self) -> None:
        """Notify subscribers that the file changed."""
        logger.debug(f"Options file {self._path} changed")
        await self._changed({"options": str(self._path)})
