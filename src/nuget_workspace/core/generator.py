"""
Workspace Generator — drives the core over a batch of local packages.

Pipeline:
1. Load package descriptors (archives, extracted folders or JSON descriptors)
2. Resolve content groups for every package and freeze the local package table
3. Build workspace entries package by package
4. Hand every entry to the configured exporters

Failures are isolated per package: a package that cannot be read, resolved
or built is logged and counted, and the batch continues, unless
``fail_fast`` is set.
"""

import logging
import time
from collections.abc import Iterable, Iterator
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from nuget_workspace.core.builder import WorkspaceEntryBuilder
from nuget_workspace.core.content import ManagedCodeConventions
from nuget_workspace.core.errors import PackageInputError, WorkspaceError
from nuget_workspace.core.policy import DEFAULT_POLICY, WorkspacePolicy
from nuget_workspace.exporters.base import Exporter
from nuget_workspace.models.entry import WorkspaceEntry
from nuget_workspace.models.framework import Target
from nuget_workspace.models.package import LocalPackageWithGroups, PackageDescriptor
from nuget_workspace.parsers.nupkg import read_package

logger = logging.getLogger("WorkspaceGenerator")


class WorkspaceGenerator:
    """
    Generates workspace entries for a closed set of local packages.

    Features:
    - Per-target content resolution with framework/runtime fallback
    - Pass-through package pruning and multi-assembly splitting
    - Pluggable export backends via Exporter protocol
    - Per-package failure isolation and run statistics
    """

    def __init__(
        self,
        exporters: list[Exporter] | None = None,
        targets: Iterable[Target | str] = (),
        policy: WorkspacePolicy = DEFAULT_POLICY,
        main_file: str | None = None,
        conventions: ManagedCodeConventions | None = None,
        fail_fast: bool = False,
    ):
        self.exporters = exporters or []
        self.fail_fast = fail_fast
        self.builder = WorkspaceEntryBuilder(conventions=conventions, main_file=main_file, policy=policy)
        for target in targets:
            self.builder.with_target(target)

        self.failures: list[tuple[str, str]] = []
        self.stats: dict = {
            "packages": 0,
            "resolved": 0,
            "skipped": 0,
            "split": 0,
            "entries": 0,
            "failed": 0,
            "start_time": 0.0,
        }

    # ──────────────────────────────────────────────
    # Failure Handling
    # ──────────────────────────────────────────────

    def _record_failure(self, label: str, error: WorkspaceError) -> None:
        """Count and log a per-package failure, or re-raise in fail-fast mode."""
        if self.fail_fast:
            raise error
        self.stats["failed"] += 1
        self.failures.append((label, str(error)))
        logger.error(f"[{label}] {error}")

    # ──────────────────────────────────────────────
    # Loading
    # ──────────────────────────────────────────────

    def load_packages(self, paths: Iterable[Path]) -> list[PackageDescriptor]:
        """Read package archives/folders, skipping the unreadable ones."""
        descriptors = []
        for path in paths:
            try:
                descriptors.append(read_package(path))
            except PackageInputError as e:
                self._record_failure(Path(path).name, e)
        return descriptors

    # ──────────────────────────────────────────────
    # Resolution
    # ──────────────────────────────────────────────

    def resolve(self, descriptors: Iterable[PackageDescriptor]) -> list[LocalPackageWithGroups]:
        """
        Resolve content groups for every package and install the result as
        the builder's local package table.
        """
        resolved: list[LocalPackageWithGroups] = []
        seen: dict[str, PackageDescriptor] = {}

        for descriptor in descriptors:
            self.stats["packages"] += 1
            try:
                key = descriptor.id.lower()
                if key in seen:
                    raise PackageInputError(
                        f"Duplicate local package (already have {seen[key]})", descriptor.id, descriptor.version
                    )
                package = self.builder.resolve_groups(descriptor)
            except PackageInputError as e:
                self._record_failure(str(descriptor), e)
                continue
            seen[key] = descriptor
            resolved.append(package)

        self.stats["resolved"] = len(resolved)
        # The table is complete before any pruning starts
        self.builder.with_local_packages(resolved)
        return resolved

    # ──────────────────────────────────────────────
    # Building
    # ──────────────────────────────────────────────

    def build_entries(self, packages: Iterable[LocalPackageWithGroups]) -> Iterator[WorkspaceEntry]:
        """Yield the entries of every package in input order."""
        for package in packages:
            try:
                entries = list(self.builder.build(package))
            except WorkspaceError as e:
                self._record_failure(str(package.descriptor), e)
                continue

            if not entries:
                self.stats["skipped"] += 1
            elif len(entries) > 1:
                self.stats["split"] += 1
            self.stats["entries"] += len(entries)
            yield from entries

    def generate(self, descriptors: Iterable[PackageDescriptor]) -> list[WorkspaceEntry]:
        """Resolve and build without exporting."""
        return list(self.build_entries(self.resolve(descriptors)))

    # ──────────────────────────────────────────────
    # Export Integration
    # ──────────────────────────────────────────────

    async def _export_entry(self, entry: WorkspaceEntry) -> None:
        """Send an entry to all configured exporters."""
        for exporter in self.exporters:
            try:
                await exporter.export(entry)
            except Exception as e:
                logger.error(f"Exporter error ({type(exporter).__name__}): {e}")

    # ──────────────────────────────────────────────
    # Main Run
    # ──────────────────────────────────────────────

    async def run(self, descriptors: Iterable[PackageDescriptor], console: Console | None = None) -> list[WorkspaceEntry]:
        """
        Run the full pipeline and export every entry.

        Args:
            descriptors: The closed set of local packages.
            console: Rich console for progress and statistics.

        Returns:
            The emitted entries, in emission order.
        """
        self.stats["start_time"] = time.time()
        console = console or Console()

        resolved = self.resolve(descriptors)
        logger.info(f"Resolved {len(resolved)} packages for {len(self.builder.targets)} targets.")

        entries: list[WorkspaceEntry] = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task_id = progress.add_task("[green]Building entries...[/green]", total=len(resolved))
            for package in resolved:
                for entry in self.build_entries([package]):
                    await self._export_entry(entry)
                    entries.append(entry)
                progress.advance(task_id)

        for exporter in self.exporters:
            try:
                await exporter.finalize()
            except Exception as e:
                logger.error(f"Exporter finalization error: {e}")

        self._print_final_statistics(console)
        logger.info("Workspace generation complete.")
        return entries

    def _get_stats_summary(self) -> str:
        elapsed = time.time() - self.stats["start_time"] if self.stats["start_time"] else 0.0
        return (
            f"Packages: {self.stats['resolved']}/{self.stats['packages']} resolved | "
            f"Entries: {self.stats['entries']} | Split: {self.stats['split']} | "
            f"Skipped: {self.stats['skipped']} | Failed: {self.stats['failed']} | "
            f"Elapsed: {elapsed:.1f}s"
        )

    def _print_final_statistics(self, console: Console) -> None:
        console.print("\n[bold green][DONE] Workspace generated[/bold green]")
        console.print(f"[cyan]Final Stats:[/cyan] {self._get_stats_summary()}")
        if self.failures:
            console.print("\n[red]Failed packages:[/red]")
            for label, reason in self.failures:
                console.print(f"  {label}: {reason}")
