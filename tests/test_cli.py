"""Tests for the CLI entry points."""

import json
import zipfile

from click.testing import CliRunner

from nuget_workspace.cli.main import cli

NUSPEC = "<package><metadata><id>{id}</id><version>1.0.0</version>{deps}</metadata></package>"


def write_nupkg(path, package_id, files, deps=""):
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(f"{package_id}.nuspec", NUSPEC.format(id=package_id, deps=deps))
        for name in files:
            archive.writestr(name, b"MZ")


class TestCLI:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "NuGet Workspace" in result.output

    def test_generate_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["generate", "--help"])
        assert result.exit_code == 0
        assert "--target" in result.output
        assert "--format" in result.output
        assert "--output-dir" in result.output
        assert "--policy" in result.output

    def test_show_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["show", "--help"])
        assert result.exit_code == 0
        assert "--target" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output


class TestGenerate:
    def test_requires_input(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["generate"])
        assert result.exit_code != 0

    def test_invalid_target(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["generate", str(tmp_path), "--target", "bogus"])
        assert result.exit_code != 0
        assert "bogus" in result.output

    def test_generate_bzl_from_packages(self, tmp_path):
        packages = tmp_path / "packages"
        packages.mkdir()
        write_nupkg(packages / "foo.1.0.0.nupkg", "Foo", ["lib/net45/Foo.dll", "lib/net45/Bar.dll"])
        write_nupkg(packages / "empty.1.0.0.nupkg", "Empty", [])
        out = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(
            cli, ["generate", str(packages), "--target", "net472", "--format", "bzl", "--output-dir", str(out)]
        )
        assert result.exit_code == 0, result.output

        content = (out / "nuget_packages.bzl").read_text()
        assert 'name = "bar",' in content
        assert 'name = "foo",' in content
        assert "empty" not in content

    def test_generate_json_from_descriptors(self, tmp_path):
        descriptors = tmp_path / "packages.json"
        descriptors.write_text(
            json.dumps(
                {
                    "packages": [
                        {"id": "A", "version": "1.0", "files": ["lib/net8.0/A.dll"], "dependencies": {"net8.0": ["B"]}},
                        {"id": "B", "version": "1.0", "files": ["lib/netstandard2.0/B.dll"]},
                    ]
                }
            )
        )
        out = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["generate", "--descriptors", str(descriptors), "-t", "net8.0", "-f", "json", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        data = json.loads((out / "a.json").read_text())
        assert data["dependencies"] == {"net8.0": ["B"]}
        assert (out / "b.json").exists()

    def test_policy_file(self, tmp_path):
        descriptors = tmp_path / "packages.json"
        descriptors.write_text(json.dumps([{"id": "Contoso.A", "version": "1.0", "files": ["lib/net45/A.dll"]}]))
        policy = tmp_path / "policy.json"
        policy.write_text(json.dumps({"sources": [{"prefix": "contoso.", "url": "https://feed.contoso"}]}))
        out = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["generate", "-d", str(descriptors), "-t", "net472", "-f", "json", "-o", str(out)],
            env={"NUGET_WORKSPACE_POLICY": str(policy)},
        )
        assert result.exit_code == 0, result.output
        assert json.loads((out / "contoso.a.json").read_text())["source"] == "https://feed.contoso"

    def test_failed_package_exits_non_zero(self, tmp_path):
        descriptors = tmp_path / "packages.json"
        descriptors.write_text(
            json.dumps([{"id": "Broken", "version": "1.0"}, {"id": "Good", "version": "1.0", "files": ["lib/net45/Good.dll"]}])
        )
        out = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(cli, ["generate", "-d", str(descriptors), "-t", "net472", "-f", "json", "-o", str(out)])
        assert result.exit_code == 1
        assert (out / "good.json").exists()

    def test_fail_fast_reports_error(self, tmp_path):
        descriptors = tmp_path / "packages.json"
        descriptors.write_text(json.dumps([{"id": "Broken", "version": "1.0"}]))

        runner = CliRunner()
        result = runner.invoke(
            cli, ["generate", "-d", str(descriptors), "-f", "json", "-o", str(tmp_path / "out"), "--fail-fast"]
        )
        assert result.exit_code == 1
        assert "Broken" in result.output


class TestShow:
    def test_show_package(self, tmp_path):
        path = tmp_path / "foo.nupkg"
        write_nupkg(path, "Foo", ["lib/net45/Foo.dll"])

        runner = CliRunner()
        result = runner.invoke(cli, ["show", str(path), "--target", "net472"])
        assert result.exit_code == 0, result.output
        assert "Foo" in result.output
        assert "lib/net45/Foo.dll" in result.output

    def test_show_empty_package(self, tmp_path):
        path = tmp_path / "empty.nupkg"
        write_nupkg(path, "Empty", [])

        runner = CliRunner()
        result = runner.invoke(cli, ["show", str(path)])
        assert result.exit_code == 0
        assert "No entries" in result.output
