"""Project metadata cache for the YApi server.

Holds project info and category lists for every configured project. The
project map is persisted as a JSON snapshot so a restart within the TTL does
not have to hit YApi again. Invalidation is all-or-nothing: once the TTL has
passed the whole cache is reloaded.

Snapshot layout::

    {"timestamp": 1760000000.0, "projects": {"28": {"id": 28, "name": ...}}}
"""

import asyncio
from collections.abc import Callable
import json
import logging
import os
from pathlib import Path
import tempfile
import time
from typing import Any

import pydantic

from yapi_mcp.schemas.yapi.models import CategoryInfo, ProjectInfo
from yapi_mcp.schemas.yapi.responses import CacheStatus
from yapi_mcp.utils.yapi import CacheError, YApiClient

logger = logging.getLogger(__name__)


class MetadataCache:
    """In-memory project and category maps backed by a TTL-gated snapshot.

    Both maps are only ever keyed by configured project ids. A refresh swaps
    in new maps; readers may see the previous state until it completes.
    """

    def __init__(
        self,
        client: YApiClient,
        snapshot_path: Path,
        ttl_minutes: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            client: YApiClient used for refreshes
            snapshot_path: JSON file holding the persisted project map
            ttl_minutes: Cache lifetime in minutes
            clock: Wall-clock source in epoch seconds (tests)
        """
        self.client = client
        self.snapshot_path = Path(snapshot_path).expanduser()
        self.ttl_minutes = ttl_minutes
        self.projects: dict[str, ProjectInfo] = {}
        self.categories: dict[str, list[CategoryInfo]] = {}
        self.last_refreshed: float | None = None
        self._clock = clock
        self._refresh_task: asyncio.Task[None] | None = None

    def is_expired(self) -> bool:
        """True if nothing was loaded yet or the last load is older than the TTL."""
        if self.last_refreshed is None:
            return True
        return self._clock() - self.last_refreshed > self.ttl_minutes * 60

    def status(self) -> CacheStatus:
        """Summarize the cache state."""
        last = None
        if self.last_refreshed is not None:
            last = time.strftime(
                "%Y-%m-%dT%H:%M:%S", time.localtime(self.last_refreshed)
            )
        return CacheStatus(
            projects=len(self.projects),
            category_lists=len(self.categories),
            last_refreshed=last,
            expired=self.is_expired(),
        )

    # Snapshot

    def _read_snapshot(self) -> dict[str, Any] | None:
        """Read the raw snapshot, None if there is none.

        Raises:
            CacheError: When the file cannot be read or parsed
        """
        try:
            raw = self.snapshot_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheError(f"Cannot read snapshot {self.snapshot_path}: {e}") from e

        try:
            snapshot = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError(f"Corrupt snapshot {self.snapshot_path}: {e}") from e

        if not isinstance(snapshot, dict) or not isinstance(
            snapshot.get("projects"), dict
        ):
            raise CacheError(f"Unexpected snapshot layout in {self.snapshot_path}")
        return snapshot

    def _write_snapshot(self, snapshot: dict[str, Any]) -> None:
        """Write the snapshot through a temp file and an atomic rename.

        Raises:
            CacheError: When the file cannot be written
        """
        directory = self.snapshot_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self.snapshot_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(snapshot, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.snapshot_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheError(f"Cannot write snapshot {self.snapshot_path}: {e}") from e

    def load_persisted(self) -> dict[str, ProjectInfo]:
        """Load the project map from the snapshot.

        A missing or corrupt snapshot yields an empty map. On success the
        snapshot's timestamp becomes ``last_refreshed``.
        """
        try:
            snapshot = self._read_snapshot()
        except CacheError as e:
            logger.warning(f"{e}. Using empty cache.")
            return {}

        if snapshot is None:
            logger.info(f"No project snapshot at {self.snapshot_path}")
            return {}

        configured = set(self.client.project_ids)
        projects: dict[str, ProjectInfo] = {}
        try:
            for project_id, record in snapshot["projects"].items():
                if str(project_id) in configured:
                    projects[str(project_id)] = ProjectInfo.model_validate(record)
        except pydantic.ValidationError as e:
            logger.warning(f"Corrupt snapshot {self.snapshot_path}: {e}. Using empty cache.")
            return {}

        timestamp = snapshot.get("timestamp")
        if isinstance(timestamp, int | float):
            self.last_refreshed = float(timestamp)

        return projects

    def persist(self, projects: dict[str, ProjectInfo]) -> None:
        """Overwrite the snapshot with ``projects`` and record the refresh time.

        Write failures are logged; the in-memory state stays valid.
        """
        now = self._clock()
        snapshot = {
            "timestamp": now,
            "projects": {pid: info.model_dump() for pid, info in projects.items()},
        }
        try:
            self._write_snapshot(snapshot)
        except CacheError as e:
            logger.warning(str(e))
        self.last_refreshed = now

    # Refresh

    async def refresh_all(self) -> None:
        """Reload project info for every configured project, then categories.

        Failures are isolated per project. If no project can be loaded the
        previous state is kept.
        """
        project_ids = self.client.project_ids
        if not project_ids:
            logger.info("No project tokens configured, nothing to load")
            return

        logger.info(f"Loading info for {len(project_ids)} project(s)...")
        results = await asyncio.gather(
            *(self.client.get_project(pid) for pid in project_ids),
            return_exceptions=True,
        )

        projects: dict[str, ProjectInfo] = {}
        for project_id, result in zip(project_ids, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to load project {project_id}: {result}")
                continue
            projects[project_id] = result

        if not projects:
            logger.error(
                f"No project could be loaded, keeping {len(self.projects)} cached project(s)"
            )
            return

        self.projects = projects
        self.persist(projects)
        logger.info(f"Loaded {len(projects)} project(s)")

        await self._refresh_categories()

    async def _refresh_categories(self) -> None:
        project_ids = list(self.projects)
        results = await asyncio.gather(
            *(self.client.get_category_list(pid) for pid in project_ids),
            return_exceptions=True,
        )

        categories: dict[str, list[CategoryInfo]] = {}
        for project_id, result in zip(project_ids, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to load categories of project {project_id}: {result}")
                continue
            categories[project_id] = result

        self.categories = categories
        logger.info(f"Loaded category lists for {len(categories)} project(s)")

    def _schedule_refresh(self) -> None:
        """Start a background refresh unless one is already running."""
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.create_task(self.refresh_all())
        self._refresh_task.add_done_callback(_log_refresh_failure)

    def warm_up(self) -> None:
        """Apply the startup policy. Must be called from a running event loop.

        Expired or empty snapshots trigger a background refresh; a valid one
        is loaded synchronously. Nothing here raises.
        """
        try:
            snapshot = self.load_persisted()
            if self.is_expired():
                logger.info("Project cache expired, refreshing in background")
                self._schedule_refresh()
            elif not snapshot:
                logger.info("Project cache empty, refreshing in background")
                self._schedule_refresh()
            else:
                self.projects = snapshot
                logger.info(f"Loaded {len(snapshot)} project(s) from {self.snapshot_path}")
        except Exception:
            logger.exception("Failed to initialize project cache")
            self._schedule_refresh()

    async def ensure_loaded(self) -> None:
        """Make sure the project map is populated.

        Waits for a running background refresh, else refreshes when empty.
        """
        if self._refresh_task is not None and not self._refresh_task.done():
            await self._refresh_task
        if not self.projects:
            await self.refresh_all()

    async def get_categories(self, project_id: str) -> list[CategoryInfo]:
        """Category list of a project, fetched on a cache miss."""
        cached = self.categories.get(project_id)
        if cached is not None:
            return cached

        categories = await self.client.get_category_list(project_id)
        if project_id in self.projects:
            self.categories[project_id] = categories
        return categories


def _log_refresh_failure(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Background cache refresh failed", exc_info=error)
