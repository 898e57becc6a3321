"""
Tests for the robopm CLI.

This test suite covers:
1. Help and argument handling
2. Replaying install/update runs against package directories
3. Exit codes on plugin failures
4. Config printing and writing
"""

import tempfile
import tomllib
from pathlib import Path

from robopm.cli import main

PLUGIN_SOURCE = """
class Installer:
    @staticmethod
    def install(io, extra):
        io.write(f"configured {sorted(extra.items())}")
"""


def write_project(root: Path, robo_block: str = "foo = 1\n") -> Path:
    project = root / "project"
    project.mkdir()
    (project / "pyproject.toml").write_text(
        f'[project]\nname = "root"\n\n[tool.robo]\n{robo_block}'
    )
    return project


def write_package(root: Path, name: str, install: str | None) -> Path:
    package_dir = root / name
    module = name.replace("-", "_")
    (package_dir / "src" / module).mkdir(parents=True)
    (package_dir / "src" / module / "__init__.py").write_text("")
    (package_dir / "src" / module / "setup.py").write_text(PLUGIN_SOURCE)

    manifest = f'[project]\nname = "{name}"\nversion = "1.0.0"\n'
    if install is not None:
        manifest += f'\n[tool.robo.operations]\ninstall = "{install}"\n'
    (package_dir / "pyproject.toml").write_text(manifest)
    return package_dir


class TestArguments:
    """Test argument handling."""

    def test_help(self, capsys):
        """No operation should print help."""
        assert main([]) == 0
        assert "robopm - Robo plugin installer" in capsys.readouterr().out

    def test_no_targets(self, capsys):
        """-S without targets should fail."""
        assert main(["-S"]) == 1
        assert "No targets specified" in capsys.readouterr().err


class TestInstallRun:
    """Test replayed runs."""

    def test_install_runs_plugins(self, capsys):
        """Plugins should receive the root project's [tool.robo] table."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            project = write_project(root)
            plugin = write_package(root, "robo-cli", "robo_cli.setup.Installer::install")
            plain = write_package(root, "plain", None)

            code = main(["-S", "--project", str(project), str(plugin), str(plain)])

            assert code == 0
            assert capsys.readouterr().out.strip() == "configured [('foo', 1)]"

    def test_noconfirm_accepted(self, capsys):
        """--noconfirm should be accepted alongside -S and change nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            project = write_project(root)
            plugin = write_package(root, "robo-yes", "robo_yes.setup.Installer::install")

            code = main(
                ["-S", "--noconfirm", "--project", str(project), str(plugin)]
            )

            assert code == 0
            assert capsys.readouterr().out.strip() == "configured [('foo', 1)]"

    def test_upgrade_runs_plugins(self, capsys):
        """-U should replay update operations."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            project = write_project(root)
            plugin = write_package(root, "robo-up", "robo_up.setup.Installer::install")

            code = main(["-U", "--project", str(project), str(plugin)])

            assert code == 0
            assert "configured" in capsys.readouterr().out

    def test_failure_exit_code(self, capsys):
        """A malformed callable should fail the run with a named error."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            project = write_project(root)
            bad = write_package(root, "robo-bad", "robo_bad.setup.Installer")
            good = write_package(root, "robo-good", "robo_good.setup.Installer::install")

            code = main(["-S", "--project", str(project), str(bad), str(good)])

            captured = capsys.readouterr()
            assert code == 1
            assert "configured" in captured.out
            assert "robo-bad" in captured.err
            assert "Malformed callable" in captured.err

    def test_malformed_autoload_fails_one_plugin(self, capsys):
        """Broken autoload rules should fail that plugin only."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            project = write_project(root)
            bad = write_package(root, "robo-bad", "robo_bad.setup.Installer::install")
            with open(bad / "pyproject.toml", "a") as f:
                f.write('\n[tool.autoload]\n"" = 5\n')
            good = write_package(root, "robo-good", "robo_good.setup.Installer::install")

            code = main(["-S", "--project", str(project), str(bad), str(good)])

            captured = capsys.readouterr()
            assert code == 1
            assert "configured" in captured.out
            assert "robo-bad" in captured.err
            assert "Autoload entry" in captured.err

    def test_missing_package_dir(self, capsys):
        """A target without pyproject.toml should be reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            project = write_project(root)

            code = main(["-S", "--project", str(project), str(root / "missing")])

            assert code == 1
            assert "not found" in capsys.readouterr().err


class TestConfigCommands:
    """Test config commands."""

    def test_print_config(self, capsys):
        """--print-config should print the default table."""
        assert main(["--print-config"]) == 0
        out = capsys.readouterr().out
        assert tomllib.loads(out)["tool"]["roboplug"]["metadata_key"] == "robo"

    def test_init_config(self, capsys):
        """--init-config should write the table into the project file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            project = write_project(Path(tmpdir))

            assert main(["--init-config", "--project", str(project)]) == 0

            data = tomllib.loads((project / "pyproject.toml").read_text())
            assert data["tool"]["roboplug"]["strict"] is True
            assert data["tool"]["robo"] == {"foo": 1}
