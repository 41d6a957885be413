"""Invalidate cached configuration when YAML files change on disk."""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional

from watchfiles import awatch, Change

from .store import ConfigStore

logger = logging.getLogger(__name__)


class ConfigWatcher:
    """Watches the config directory and evicts stale cache entries.

    A change to ``businesses/<id>.yaml`` evicts that business; a change to
    ``pipelines/<key>.yaml`` evicts that pipeline. The next request reloads
    from disk.

    Usage:
        watcher = ConfigWatcher(store)
        await watcher.start()
        ...
        await watcher.stop()
    """

    def __init__(self, store: ConfigStore, step_ms: int = 200):
        self.store = store
        self.step_ms = step_ms
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start watching in a background task."""
        if self.is_running:
            logger.warning("ConfigWatcher is already running")
            return

        if not self.store.config_dir.is_dir():
            logger.warning(f"Config directory does not exist, not watching: {self.store.config_dir}")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._watch())
        logger.info(f"Watching configuration in {self.store.config_dir}")

    async def stop(self) -> None:
        """Stop watching."""
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.info("Config watcher stopped")

    async def _watch(self) -> None:
        try:
            async for changes in awatch(
                self.store.config_dir,
                recursive=True,
                step=self.step_ms,
                stop_event=self._stop_event,
            ):
                self.handle_changes(changes)
        except asyncio.CancelledError:
            logger.debug("Config watch cancelled")
        except Exception as e:
            logger.error(f"Error watching {self.store.config_dir}: {e}", exc_info=True)

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> int:
        """
        Evict the cache entries matching a batch of file changes.

        Args:
            changes: (change, path) pairs as yielded by watchfiles

        Returns:
            Number of entries evicted
        """
        evicted = 0
        for _change, path_str in changes:
            path = Path(path_str)
            if path.suffix != ".yaml":
                continue

            parent = path.parent.name
            if parent == "businesses":
                evicted += self.store.invalidate_business(path.stem)
            elif parent == "pipelines":
                evicted += self.store.invalidate_pipeline(path.stem)
        return evicted
