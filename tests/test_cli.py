"""CLI smoke tests."""

import json
import tempfile
from pathlib import Path

from click.testing import CliRunner

from nlm.cli import main


def _setup(root: Path) -> tuple[Path, Path, Path]:
    store, lib, app = root / "store", root / "lib", root / "app"
    lib.mkdir()
    (lib / "package.json").write_text(json.dumps({"name": "demo", "version": "1.0.0"}))
    (lib / "index.js").write_text("module.exports = 1")
    (app / "node_modules").mkdir(parents=True)
    (app / "package.json").write_text(json.dumps({"name": "app", "version": "0.0.1"}))
    return store, lib, app


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0


def test_push_install_status_list(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        store, lib, app = _setup(Path(tmpdir).resolve())
        runner = CliRunner()
        env = {"NLM_STORE_DIR": str(store)}

        monkeypatch.chdir(lib)
        result = runner.invoke(main, ["push"], env=env)
        assert result.exit_code == 0, result.output
        assert "demo@1.0.0" in result.output

        monkeypatch.chdir(app)
        result = runner.invoke(main, ["install", "demo"], env=env)
        assert result.exit_code == 0, result.output
        assert (app / "node_modules" / "demo").is_symlink()

        result = runner.invoke(main, ["status"], env=env)
        assert result.exit_code == 0, result.output
        assert "OK" in result.output

        result = runner.invoke(main, ["ls"], env=env)
        assert result.exit_code == 0
        assert "demo" in result.output

        result = runner.invoke(main, ["list", "--store"], env=env)
        assert result.exit_code == 0
        assert "demo" in result.output

        result = runner.invoke(main, ["uninstall", "demo"], env=env)
        assert result.exit_code == 0, result.output
        assert not (app / "node_modules" / "demo").exists()


def test_failures_exit_nonzero(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        store, _, app = _setup(Path(tmpdir).resolve())
        monkeypatch.chdir(app)
        runner = CliRunner()

        result = runner.invoke(main, ["--store-dir", str(store), "install", "missing"])
        assert result.exit_code == 1
        assert "not found" in " ".join(result.output.split())

        result = runner.invoke(main, ["--store-dir", str(store), "update", "missing"])
        assert result.exit_code == 1


def test_config_set_and_show(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        store, _, app = _setup(Path(tmpdir).resolve())
        monkeypatch.chdir(app)
        runner = CliRunner()
        env = {"NLM_STORE_DIR": str(store)}

        result = runner.invoke(main, ["config", "--global", "package_manager", "yarn"], env=env)
        assert result.exit_code == 0, result.output
        assert (store / "nlm.config.yaml").exists()

        result = runner.invoke(main, ["config", "package_manager"], env=env)
        assert result.exit_code == 0
        assert result.output.strip() == "yarn"

        result = runner.invoke(main, ["config", "package_manager", "bun"], env=env)
        assert result.exit_code == 1
