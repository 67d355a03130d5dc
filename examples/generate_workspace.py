"""
Example: Generate a Starlark workspace from the NuGet global packages folder.

Usage:
    python examples/generate_workspace.py ~/.nuget/packages ./third_party
"""

import asyncio
import sys
from pathlib import Path

from nuget_workspace import WorkspaceGenerator
from nuget_workspace.core.policy import load_policy
from nuget_workspace.exporters.bazel import BazelExporter
from nuget_workspace.parsers.nupkg import find_packages


async def main(packages_dir: Path, output_dir: Path):
    # Configure Starlark exporter
    exporter = BazelExporter(output_dir=output_dir)

    # Private feed rules and version overrides
    policy = load_policy(Path(__file__).parent / "policy.json")

    # One entry set for .NET Framework and one for .NET 8 on Linux
    generator = WorkspaceGenerator(
        exporters=[exporter],
        targets=["net472", "net8.0:linux-x64"],
        policy=policy,
    )

    descriptors = generator.load_packages(find_packages(packages_dir))
    await generator.run(descriptors)

    print(f"\n✅ Workspace written to: {exporter.filepath.absolute()}")


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1]), Path(sys.argv[2] if len(sys.argv) > 2 else "./workspace_output")))
