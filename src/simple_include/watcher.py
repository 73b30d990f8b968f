"""
File system watcher and incremental rebuild dispatcher.

Watchdog observer threads translate file system notifications into
WatchEvents and hand them to the asyncio loop. A single consumer task
drains the queue and regenerates outputs one event at a time, so the
dependency graph and the target tree have exactly one writer.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog
from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_OPENED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from simple_include.engine import IncludeEngine
from simple_include.errors import ExpansionError, FailureKind, PathResolutionError
from simple_include.paths import normalize_path

logger = structlog.get_logger(__name__)


class EventKind(str, Enum):
    """Kinds of watch events."""

    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    ACCESS = "access"
    ERROR = "error"


@dataclass
class WatchEvent:
    """A batch of paths affected by one file system notification."""

    kind: EventKind
    paths: list[Path] = field(default_factory=list)
    error: BaseException | None = None

    @classmethod
    def failure(cls, error: BaseException) -> "WatchEvent":
        """Event reporting that the notification source failed."""
        return cls(EventKind.ERROR, [], error)


_ACCESS_TYPES = {EVENT_TYPE_OPENED, EVENT_TYPE_CLOSED, EVENT_TYPE_CLOSED_NO_WRITE}


def translate_event(event: FileSystemEvent) -> list[WatchEvent]:
    """
    Convert a watchdog event into watch events.

    Directory events are dropped. A move becomes a removal of the old path
    followed by a creation of the new one.
    """
    if event.is_directory:
        return []

    src_path = Path(os.fsdecode(event.src_path))
    event_type = event.event_type

    if event_type == EVENT_TYPE_CREATED:
        return [WatchEvent(EventKind.CREATE, [src_path])]
    if event_type == EVENT_TYPE_MODIFIED:
        return [WatchEvent(EventKind.MODIFY, [src_path])]
    if event_type == EVENT_TYPE_DELETED:
        return [WatchEvent(EventKind.REMOVE, [src_path])]
    if event_type == EVENT_TYPE_MOVED:
        dest_path = Path(os.fsdecode(event.dest_path))
        return [
            WatchEvent(EventKind.REMOVE, [src_path]),
            WatchEvent(EventKind.CREATE, [dest_path]),
        ]
    if event_type in _ACCESS_TYPES:
        return [WatchEvent(EventKind.ACCESS, [src_path])]
    return []


class QueueingEventHandler(FileSystemEventHandler):
    """
    Watchdog handler feeding the dispatcher queue.

    Runs on observer threads; events are passed to the loop with
    call_soon_threadsafe and never processed here.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[WatchEvent],
    ) -> None:
        super().__init__()
        self._loop = loop
        self._queue = queue

    def _put(self, event: WatchEvent) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Queue the translated form of any watchdog event."""
        try:
            translated = translate_event(event)
        except Exception as e:
            self._put(WatchEvent.failure(e))
            return

        for watch_event in translated:
            self._put(watch_event)


class WatchDispatcher:
    """
    Consumer of watch events.

    Regenerates the output of every changed source file, then re-expands
    the files that directly include it (one hop, no cascading). Removals
    delete the mirrored output. Failures are logged per path and never
    stop the dispatcher.
    """

    def __init__(self, engine: IncludeEngine) -> None:
        self.engine = engine

    async def run(self, queue: asyncio.Queue[WatchEvent]) -> None:
        """Process events from the queue until cancelled."""
        while True:
            event = await queue.get()
            try:
                self.dispatch(event)
            finally:
                queue.task_done()

    def dispatch(self, event: WatchEvent) -> None:
        """Process one watch event."""
        if event.kind is EventKind.ERROR:
            logger.error("Error watching for changes", error=str(event.error))
            return

        if event.kind is EventKind.ACCESS:
            return

        handler = self._handle_removed if event.kind is EventKind.REMOVE else self._handle_changed
        for path in event.paths:
            try:
                handler(path)
            except Exception:
                logger.exception("Error handling event", kind=event.kind.value, path=str(path))

    def _handle_removed(self, path: Path) -> None:
        """Delete the mirrored output of a removed source file."""
        path = normalize_path(path)

        if self.engine.is_in_target(path):
            logger.debug("Ignoring removal in target tree", path=str(path))
            return

        try:
            relative = self.engine.relative_to_source(path)
        except PathResolutionError as e:
            logger.info("Removed path outside source root, skipping", path=str(path), error=str(e))
            return

        target_file = self.engine.output_path(relative)
        logger.info("File removed", path=str(path), target=str(target_file))

        if not (self.engine.is_in_target(target_file) and target_file.is_file()):
            return

        try:
            target_file.unlink()
        except OSError as e:
            logger.error(
                "Failed to remove target file",
                target=str(target_file),
                path=str(path),
                error=str(e),
            )

    def _handle_changed(self, path: Path) -> None:
        """Regenerate a changed source file and its direct dependents."""
        path = normalize_path(path)

        if self.engine.is_in_target(path):
            logger.debug("Ignoring change in target tree", path=str(path))
            return

        try:
            relative = self.engine.relative_to_source(path)
        except PathResolutionError as e:
            logger.info("Changed path outside source root, skipping", path=str(path), error=str(e))
            return

        logger.info("File changed", path=str(relative))

        try:
            includes = self.engine.expand_file(relative)
        except ExpansionError as e:
            logger.info("Error processing file", path=str(relative), kind=e.kind.value, error=str(e.cause))
        else:
            for included in includes:
                logger.debug("File includes", path=str(relative), included=str(included))

        for dependent in sorted(self.engine.graph.dependents_of(relative)):
            try:
                self._regenerate_dependent(dependent, relative)
            except Exception:
                logger.exception("Error regenerating dependent", path=str(dependent), changed=str(relative))

    def _regenerate_dependent(self, dependent: Path, changed: Path) -> None:
        """Re-expand a file that includes a changed file."""
        try:
            # Its own includes are unchanged, so the graph is left as is.
            self.engine.expand_file(dependent, record=False)
        except ExpansionError as e:
            if e.kind is FailureKind.NOT_FOUND:
                logger.info("Including file not found", path=str(dependent), changed=str(changed))
            elif e.kind is FailureKind.INVALID_ENCODING:
                logger.info("Including file contains binary data", path=str(dependent), changed=str(changed))
            else:
                logger.error("Error processing file", path=str(dependent), error=str(e.cause))
            return

        logger.info("Regenerated dependent", path=str(dependent), changed=str(changed))


class FileWatcher:
    """
    File system watcher for the source tree.

    Features:
    - Recursive watchdog observer on the source root
    - Thread-safe hand-off to a single asyncio consumer
    - Native or polling observers
    """

    def __init__(
        self,
        engine: IncludeEngine,
        use_polling: bool = False,
        polling_interval: float = 1.0,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            engine: Engine used to regenerate outputs.
            use_polling: Use a polling observer instead of native events.
            polling_interval: Seconds between polls for the polling observer.
        """
        self.engine = engine
        self.use_polling = use_polling
        self.polling_interval = polling_interval
        self.dispatcher = WatchDispatcher(engine)

        self._observer: BaseObserver | None = None
        self._queue: asyncio.Queue[WatchEvent] | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the watcher is active."""
        return self._running

    @property
    def queue(self) -> asyncio.Queue[WatchEvent] | None:
        """Queue drained by the dispatcher, None before start()."""
        return self._queue

    def _create_observer(self) -> BaseObserver:
        if self.use_polling:
            return PollingObserver(timeout=self.polling_interval)
        return Observer()

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._running:
            return

        logger.info("Starting file watcher", path=str(self.engine.source_root))

        self._queue = asyncio.Queue()
        handler = QueueingEventHandler(asyncio.get_running_loop(), self._queue)

        self._observer = self._create_observer()
        self._observer.schedule(
            handler,
            str(self.engine.source_root),
            recursive=True,
        )
        self._observer.start()
        self._task = asyncio.create_task(self.dispatcher.run(self._queue))
        self._running = True

        logger.info("File watcher started")

    async def stop(self) -> None:
        """Stop watching for file changes."""
        if not self._running:
            return

        logger.info("Stopping file watcher")

        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error("Dispatcher task failed", error=str(e))
            self._task = None

        self._running = False
        logger.info("File watcher stopped")
