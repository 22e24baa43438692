"""
Batch build of precomputed site share cards.

A build enumerates static targets, skips every card whose content-addressed
file already exists, renders the rest on a bounded thread pool and then
reconciles the manifest. The first render failure aborts the build before
anything is committed to the manifest.
"""
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

from domain.models import ManifestEntry, SiteCardParams
from services.asset_server import LocalAssetServer
from services.content_catalog import ContentCatalog
from services.share_card_cache import (
    MANIFEST_FILE_NAME,
    STATIC_DIR_RELATIVE,
    build_file_name,
    build_manifest,
    build_render_payload,
    compute_payload_hash,
    entry_public_path,
    manifest_path,
    merge_entries,
    output_dir,
    read_manifest,
    remove_orphans,
    remove_stale_entries,
    write_manifest,
)
from services.share_card_renderer import HttpAssetSource, ShareCardCompositor
from services.share_card_static import LocalAssetSource
from services.share_card_targets import (
    ResolvedFilters,
    ShareCardConfigError,
    ShareCardTarget,
    collect_targets,
)
from settings import settings

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 6
MAX_CONCURRENCY = 12
RENDERER_ONDEMAND = "ondemand"
RENDERER_PRECOMPUTE = "precompute"
ERROR_BODY_LIMIT = 320


class BuildState(str, Enum):
    IDLE = "idle"
    ENUMERATING = "enumerating"
    DIFFING = "diffing"
    RENDERING = "rendering"
    RECONCILING = "reconciling"
    DONE = "done"
    FAILED = "failed"


class BatchRenderError(RuntimeError):
    """A card failed to render or write; the build is aborted."""

    def __init__(self, route_key: str, cause: BaseException):
        self.route_key = route_key
        self.cause = cause
        detail = str(cause)[:ERROR_BODY_LIMIT] or cause.__class__.__name__
        super().__init__(f"Render failed for {route_key}: {detail}")


@dataclass(frozen=True)
class RenderTask:
    route_key: str
    output_path: Path
    query: Dict[str, str]


@dataclass
class BuildReport:
    targets: int
    wrote: int
    reused: int
    removed: int
    filters: ResolvedFilters
    manifest_path: Path

    @property
    def filtered(self) -> bool:
        return self.filters.has_filters

    def summary_line(self) -> str:
        mode = f"mode=filtered {self.filters.summary()}" if self.filtered else "mode=full"
        return (
            f"[share-cards] targets={self.targets} wrote={self.wrote} reused={self.reused} "
            f"removed={self.removed} {mode} manifest={STATIC_DIR_RELATIVE}/{MANIFEST_FILE_NAME}"
        )


def clamp_concurrency(value: Optional[int]) -> int:
    return max(1, min(MAX_CONCURRENCY, value or DEFAULT_CONCURRENCY))


def write_card(path: Path, data: bytes) -> None:
    """Write through a temp file so a crash never leaves a partial png under its final name."""
    tmp_path = path.with_name(f"{path.name}.tmp")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


class RenderPool:
    """
    Fixed set of workers pulling tasks off a shared cursor.

    After the first failure no new task is started; in-flight tasks finish and
    the failure is raised from `run()`.
    """

    def __init__(
        self,
        tasks: Sequence[RenderTask],
        render: Callable[[RenderTask], bytes],
        concurrency: int = DEFAULT_CONCURRENCY,
        log_every: int = 100,
    ):
        self.tasks = list(tasks)
        self.render = render
        self.concurrency = clamp_concurrency(concurrency)
        self.log_every = max(1, log_every or 1)
        self.rendered = 0
        self._cursor = 0
        self._lock = threading.Lock()
        self._abort = threading.Event()
        self._error: Optional[BatchRenderError] = None

    def _next_task(self) -> Optional[RenderTask]:
        with self._lock:
            if self._abort.is_set() or self._cursor >= len(self.tasks):
                return None
            task = self.tasks[self._cursor]
            self._cursor += 1
            return task

    def _fail(self, task: RenderTask, exc: Exception) -> None:
        with self._lock:
            if self._error is None:
                self._error = BatchRenderError(task.route_key, exc)
        self._abort.set()

    def _worker(self) -> None:
        while True:
            task = self._next_task()
            if task is None:
                return
            try:
                write_card(task.output_path, self.render(task))
            except Exception as exc:  # any failure aborts the batch
                self._fail(task, exc)
                return
            with self._lock:
                self.rendered += 1
                rendered = self.rendered
            if rendered % self.log_every == 0:
                logger.info("[share-cards] progress rendered=%s/%s", rendered, len(self.tasks))

    def run(self) -> int:
        if not self.tasks:
            return 0
        workers = min(self.concurrency, len(self.tasks))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="share-card") as executor:
            wait([executor.submit(self._worker) for _ in range(workers)])
        if self._error is not None:
            raise self._error from self._error.cause
        if self.rendered % self.log_every != 0:
            logger.info("[share-cards] progress rendered=%s/%s", self.rendered, len(self.tasks))
        return self.rendered


class ShareCardBuild:
    """One build run: enumerate, diff, render, reconcile."""

    def __init__(
        self,
        filters: ResolvedFilters,
        public_root: Optional[Path] = None,
        origin: Optional[str] = None,
        renderer: Optional[str] = None,
        concurrency: Optional[int] = None,
        log_every: Optional[int] = None,
        catalog: Optional[ContentCatalog] = None,
        template_revision: Optional[str] = None,
        render: Optional[Callable[[RenderTask], bytes]] = None,
    ):
        self.filters = filters
        self.public_root = Path(public_root) if public_root is not None else settings.SHARE_CARD_PUBLIC_ROOT
        self.origin = origin or settings.SHARE_CARD_BUILD_ORIGIN
        self.renderer = (renderer or settings.SHARE_CARD_RENDERER or RENDERER_ONDEMAND).strip().lower()
        self.concurrency = clamp_concurrency(concurrency if concurrency is not None else settings.SHARE_CARD_CONCURRENCY)
        self.log_every = max(1, log_every if log_every is not None else settings.SHARE_CARD_LOG_EVERY)
        self.catalog = catalog
        self.template_revision = template_revision
        self._render_override = render
        self.state = BuildState.IDLE

        if self.renderer not in (RENDERER_ONDEMAND, RENDERER_PRECOMPUTE):
            raise ShareCardConfigError(
                f'Unknown renderer "{self.renderer}". Expected "{RENDERER_ONDEMAND}" or "{RENDERER_PRECOMPUTE}".'
            )

    @property
    def output_dir(self) -> Path:
        return output_dir(self.public_root)

    @property
    def display_host(self) -> str:
        return urlsplit(self.origin).netloc or self.origin

    def _set_state(self, state: BuildState) -> None:
        logger.debug("[share-cards] %s -> %s", self.state.value, state.value)
        self.state = state

    def enumerate(self) -> List[ShareCardTarget]:
        self._set_state(BuildState.ENUMERATING)
        targets = collect_targets(self.filters, origin=self.origin, catalog=self.catalog)
        if not targets:
            raise ShareCardConfigError("No static share card targets matched the selected filters.")
        return targets

    def diff(self, targets: Sequence[ShareCardTarget]):
        """Manifest entries for every target, plus render tasks for cards not on disk yet."""
        self._set_state(BuildState.DIFFING)
        entries: Dict[str, ManifestEntry] = {}
        tasks: List[RenderTask] = []
        for target in targets:
            payload = build_render_payload(target.metadata)
            digest = compute_payload_hash(payload, self.template_revision)
            file_name = build_file_name(target.route_key, digest)
            file_path = self.output_dir / file_name
            entries[target.route_key] = ManifestEntry(target.route_key, entry_public_path(file_name), digest)
            if not file_path.exists():
                tasks.append(RenderTask(target.route_key, file_path, payload.to_query()))
        return entries, tasks

    def _compositor_render(self, compositor: ShareCardCompositor) -> Callable[[RenderTask], bytes]:
        def render(task: RenderTask) -> bytes:
            return compositor.render_site_card(SiteCardParams.from_query(task.query))
        return render

    def render(self, tasks: Sequence[RenderTask]) -> int:
        self._set_state(BuildState.RENDERING)
        if not tasks:
            return 0
        if self._render_override is not None:
            return RenderPool(tasks, self._render_override, self.concurrency, self.log_every).run()

        if self.renderer == RENDERER_PRECOMPUTE:
            compositor = ShareCardCompositor(LocalAssetSource(self.public_root), self.display_host)
            return RenderPool(tasks, self._compositor_render(compositor), self.concurrency, self.log_every).run()

        server = LocalAssetServer(self.public_root)
        try:
            server.start()
            compositor = ShareCardCompositor(HttpAssetSource(server.origin), self.display_host)
            return RenderPool(tasks, self._compositor_render(compositor), self.concurrency, self.log_every).run()
        finally:
            server.stop()

    def reconcile(self, selected: Dict[str, ManifestEntry]) -> int:
        self._set_state(BuildState.RECONCILING)
        path = manifest_path(self.public_root)
        existing = read_manifest(path)
        if self.filters.has_filters:
            merged = merge_entries(existing.entries if existing else None, selected)
            removed = remove_stale_entries(self.output_dir, existing, merged, selected.keys())
        else:
            merged = merge_entries(None, selected)
            expected = [entry.asset_path.rsplit("/", 1)[-1] for entry in merged.values()]
            removed = remove_orphans(self.output_dir, expected)
        write_manifest(path, build_manifest(merged))
        return removed

    def run(self) -> BuildReport:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            targets = self.enumerate()
            entries, tasks = self.diff(targets)
            wrote = self.render(tasks)
            removed = self.reconcile(entries)
        except Exception:
            self._set_state(BuildState.FAILED)
            raise
        self._set_state(BuildState.DONE)

        report = BuildReport(
            targets=len(targets),
            wrote=wrote,
            reused=len(targets) - len(tasks),
            removed=removed,
            filters=self.filters,
            manifest_path=manifest_path(self.public_root),
        )
        logger.info(report.summary_line())
        return report
