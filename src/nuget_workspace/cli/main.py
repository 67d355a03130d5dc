"""
NuGet Workspace CLI — build workspace entries from local NuGet packages.

Usage:
    nuget-workspace generate ./packages --target net8.0 --format bzl --output-dir ./third_party
    nuget-workspace generate --descriptors packages.json --target net472 --target netstandard2.0 -f json
    nuget-workspace show ./packages/newtonsoft.json.13.0.3.nupkg --target net8.0:linux-x64
"""

import asyncio
import logging
import sys

import click

from nuget_workspace.models.framework import FrameworkParseError, Target


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _parse_targets(ctx, param, values) -> list[Target]:
    try:
        return [Target.parse(value) for value in values]
    except FrameworkParseError as e:
        raise click.BadParameter(str(e)) from e


def _load_policy(path):
    from nuget_workspace.core.errors import PolicyError
    from nuget_workspace.core.policy import load_policy

    try:
        return load_policy(path)
    except PolicyError as e:
        raise click.ClickException(str(e)) from e


target_option = click.option(
    "--target",
    "-t",
    "targets",
    multiple=True,
    default=["netstandard2.0"],
    callback=_parse_targets,
    help="Target framework, optionally with a runtime: tfm[:rid]. Repeatable.",
)
policy_option = click.option(
    "--policy",
    "-p",
    type=click.Path(exists=True, dir_okay=False),
    envvar="NUGET_WORKSPACE_POLICY",
    default=None,
    help="Policy JSON file (sources, version overrides, SDK assemblies).",
)


@click.group()
@click.version_option(package_name="nuget-workspace")
def cli():
    """NuGet Workspace — hermetic build workspace entries from local NuGet packages."""
    pass


@cli.command()
@click.argument("packages_dir", required=False, type=click.Path(exists=True, file_okay=False))
@target_option
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["bzl", "json", "sqlite"]),
    default="bzl",
    help="Export format.",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(),
    default="./workspace_output",
    help="Output directory for generated files.",
)
@click.option(
    "--descriptors",
    "-d",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with package descriptors, read in addition to PACKAGES_DIR.",
)
@click.option("--main-file", "-m", type=str, default=None, help="Main file recorded on every package entry.")
@policy_option
@click.option("--fail-fast", is_flag=True, help="Stop at the first package that fails.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def generate(packages_dir, targets, fmt, output_dir, descriptors, main_file, policy, fail_fast, verbose):
    """Generate workspace entries for the packages under PACKAGES_DIR."""
    from nuget_workspace.core.errors import WorkspaceError
    from nuget_workspace.core.generator import WorkspaceGenerator
    from nuget_workspace.exporters import get_exporter
    from nuget_workspace.parsers.descriptor import load_descriptors
    from nuget_workspace.parsers.nupkg import find_packages

    if packages_dir is None and descriptors is None:
        raise click.UsageError("Give a PACKAGES_DIR, a --descriptors file, or both.")

    _configure_logging(verbose)
    workspace_policy = _load_policy(policy)

    generator = WorkspaceGenerator(
        exporters=[get_exporter(fmt, output_dir)],
        targets=targets,
        policy=workspace_policy,
        main_file=main_file,
        fail_fast=fail_fast,
    )

    try:
        packages = []
        if packages_dir is not None:
            packages.extend(generator.load_packages(find_packages(packages_dir)))
        if descriptors is not None:
            packages.extend(load_descriptors(descriptors))

        asyncio.run(generator.run(packages))
    except WorkspaceError as e:
        raise click.ClickException(str(e)) from e

    if generator.stats["failed"]:
        sys.exit(1)


@cli.command()
@click.argument("package_path", type=click.Path(exists=True))
@target_option
@click.option("--main-file", "-m", type=str, default=None, help="Main file recorded on the entry.")
@policy_option
def show(package_path, targets, main_file, policy):
    """Show the resolved content groups and entries of one package."""
    from rich.console import Console
    from rich.table import Table

    from nuget_workspace.core.builder import WorkspaceEntryBuilder
    from nuget_workspace.core.errors import WorkspaceError
    from nuget_workspace.parsers.nupkg import read_package

    logging.basicConfig(level=logging.WARNING)
    console = Console()

    builder = WorkspaceEntryBuilder(main_file=main_file, policy=_load_policy(policy))
    for target in targets:
        builder.with_target(target)

    try:
        descriptor = read_package(package_path)
        package = builder.resolve_groups(descriptor)
        builder.with_local_packages([package])
        entries = list(builder.build(package))
    except WorkspaceError as e:
        raise click.ClickException(str(e)) from e

    groups = Table(title=f"{descriptor} ({', '.join(str(t) for t in builder.targets)})")
    groups.add_column("Kind", style="cyan")
    groups.add_column("Framework", style="magenta")
    groups.add_column("Files")
    for kind, kind_groups in (
        ("lib", package.lib_groups),
        ("runtime", package.runtime_groups),
        ("tools", package.tool_groups),
    ):
        for group in kind_groups:
            groups.add_row(kind, group.target_framework.short_name, "\n".join(group.items) or "-")
    console.print(groups)

    if not entries:
        console.print("[yellow]No entries: the package has no runtime content and no dependencies.[/yellow]")
        return

    table = Table(title="Entries")
    table.add_column("Name", style="green")
    table.add_column("Version")
    table.add_column("Source")
    table.add_column("Dependencies")
    table.add_column("Files")
    for entry in entries:
        deps = "\n".join(f"{fw}: {', '.join(ids)}" for fw, ids in entry.dependencies.items())
        files = "\n".join(f"{fw}: {', '.join(items)}" for fw, items in entry.files.items())
        table.add_row(entry.display_name, entry.version, entry.package_source or "-", deps or "-", files or "-")
    console.print(table)


if __name__ == "__main__":
    cli()
