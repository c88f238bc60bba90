"""Startup pipeline: update, build and route every configured project."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .builder import BuildError, Builder
from .config import ConfigError, ProjectConfig, ServerConfig
from .git.updater import UpdateError, Updater
from .logging import get_logger, log_failure, log_unexpected, project_logger
from .models import INDEX_FILE, EntryStatus, ProjectEntry, RouteTable
from .paths import InvalidProjectPath, resolve_source_dir, sanitize
from .process import CommandRunner
from .resolver import output_dir


class Orchestrator:
    """Turns project configuration into checked-out sources, built docs and routes.

    Every project is processed independently: an update or build failure is
    logged and recorded on that project's entry, and never stops the others.
    Only configuration problems (such as two projects claiming the same
    public path) abort the run.
    """

    def __init__(
        self,
        libs_path: Path,
        updater: Updater | None = None,
        builder: Builder | None = None,
        *,
        build_on_start: bool = True,
        jobs: int = 1,
    ) -> None:
        self.libs_path = Path(libs_path)
        self.updater = updater or Updater()
        self.builder = builder or Builder()
        self.build_on_start = build_on_start
        self.jobs = max(1, jobs)
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(
        cls, config: ServerConfig, runner: CommandRunner | None = None
    ) -> "Orchestrator":
        return cls(
            config.libs_path,
            updater=Updater(runner, timeout=config.command_timeout),
            builder=Builder(runner, timeout=config.command_timeout),
            build_on_start=config.build_on_start,
            jobs=config.jobs,
        )

    def run(self, configs: Iterable[ProjectConfig], update_on_start: bool) -> RouteTable:
        """Process every project and return the resulting route table."""
        entries = self.prepare(configs)
        self.logger.info(
            "Preparing %d project(s) (update_on_start=%s, build_on_start=%s)",
            len(entries),
            update_on_start,
            self.build_on_start,
        )

        if self.jobs > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=self.jobs, thread_name_prefix="docserve") as pool:
                # list() waits for completion; _process_entry never raises.
                list(pool.map(lambda entry: self._process_entry(entry, update_on_start), entries))
        else:
            for entry in entries:
                self._process_entry(entry, update_on_start)

        table = RouteTable(entries)
        failed = table.failed()
        if failed:
            self.logger.warning(
                "%d of %d project(s) need attention: %s",
                len(failed),
                len(entries),
                ", ".join(f"{entry.public_path} ({entry.status.value})" for entry in failed),
            )
        else:
            self.logger.info("All %d project(s) ready", len(entries))
        return table

    def prepare(self, configs: Iterable[ProjectConfig]) -> List[ProjectEntry]:
        """Create one entry per usable project, failing on public path collisions."""
        entries: List[ProjectEntry] = []
        claimed: Dict[str, str] = {}
        for project in configs:
            try:
                public_path = sanitize(project.path)
                source_dir = resolve_source_dir(self.libs_path, project.path)
            except InvalidProjectPath as exc:
                self.logger.error("Skipping project '%s': %s", project.path, exc)
                continue

            if public_path in claimed:
                raise ConfigError(
                    f"Projects '{claimed[public_path]}' and '{project.path}' "
                    f"both map to the public path '/{public_path}/'"
                )
            claimed[public_path] = project.path

            entries.append(
                ProjectEntry(
                    config=project,
                    source_dir=source_dir,
                    public_path=public_path,
                    output_dir=output_dir(source_dir, project.build_system, project.doc_output),
                )
            )
        return entries

    # ------------------------------------------------------------------
    # Internals

    def _process_entry(self, entry: ProjectEntry, update_on_start: bool) -> None:
        update_error: Optional[UpdateError] = None
        build_error: Optional[BuildError] = None
        built = False
        log = project_logger(entry.public_path)

        try:
            if update_on_start:
                if entry.config.repo:
                    log.info("Updating %s from %s", entry.config.path, entry.config.repo)
                try:
                    self.updater.update(entry)
                except UpdateError as exc:
                    update_error = exc
                    log_failure(log, "Update failed", exc)

            if self.build_on_start:
                try:
                    self.builder.build(entry)
                    built = True
                except BuildError as exc:
                    build_error = exc
                    log_failure(log, "Build failed", exc)
        except Exception as exc:  # pragma: no cover
            log_unexpected(log, f"Unexpected error while preparing {entry.config.path}", exc)
            entry.status = EntryStatus.BUILD_FAILED
            entry.detail = f"Unexpected error: {exc}"
            return

        entry.status, entry.detail = self._classify(entry, update_error, build_error, built)
        log.debug("Status %s (%s)", entry.status.value, entry.output_dir)

    @staticmethod
    def _classify(
        entry: ProjectEntry,
        update_error: Optional[UpdateError],
        build_error: Optional[BuildError],
        built: bool,
    ) -> tuple[EntryStatus, Optional[str]]:
        if build_error is not None:
            if update_error is not None and not entry.source_dir.is_dir():
                # The sources never arrived, so the build had nothing to run on.
                return EntryStatus.UPDATE_FAILED, update_error.summary()
            return EntryStatus.BUILD_FAILED, build_error.summary()
        if update_error is not None:
            return EntryStatus.UPDATE_FAILED, update_error.summary()
        if entry.has_index():
            return EntryStatus.OK, None
        if built:
            return (
                EntryStatus.MISSING_OUTPUT,
                f"Build finished but {INDEX_FILE} was not found in {entry.output_dir}",
            )
        return EntryStatus.NOT_BUILT, f"Documentation has not been built yet ({entry.output_dir})"


__all__ = ["Orchestrator"]
