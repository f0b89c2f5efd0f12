"""End-to-end tests for the bootstrap orchestrator."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from qxc_core.api import LibraryExtension
from qxc_core.app import QxcApp
from qxc_core.assembler import StyleCompiler
from qxc_core.errors import SchemaDriftError, UnresolvedLibraryError, UsageError
from qxc_core.migration import MigrationState
from qxc_core.paths import UserDirs
from qxc_core.plugin import PluginLoadError
from qxc_core.settings import SettingsResolver

FIXTURE_ROOT = Path(__file__).parent / "fixtures" / "projects"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "sample_app"
    shutil.copytree(FIXTURE_ROOT / "sample_app", root)
    return root


def _app(project: Path, installer_factory, *args: str, env: dict | None = None) -> QxcApp:
    settings = SettingsResolver(
        project_root=project,
        user_dirs=UserDirs(config_dir_override=project.parent / "user-config"),
        env=env or {},
    )
    return QxcApp(list(args), project_root=project, installer_factory=installer_factory, settings=settings)


def test_bootstrap_assembles_effective_configuration(project, installer_factory):
    app = _app(project, installer_factory, "compile", "--set-env", "qx.debug=false", "--locale", "de")

    result = app.bootstrap()

    assert result.command == "compile"
    assert result.migration.state is MigrationState.NO_LOCKFILE
    assert result.effective.target_type == "source"
    assert result.effective.target["environment"] == {"qx.debug": "false", "sample.theme": "light"}
    assert result.effective.descriptor["locales"] == ["de"]
    assert result.effective.descriptor["environment"] == {"sample.provider": "loaded"}
    assert result.effective.style_compiler is StyleCompiler.LEGACY
    assert [entry.root_path for entry in result.libraries] == [project / ".", project / "libs/widgets"]
    assert installer_factory.created == []


def test_project_plugin_replaces_the_provider(project, installer_factory):
    app = _app(project, installer_factory, "compile")
    app.bootstrap()

    provider = app.context.provider
    assert type(provider).__name__ == "SampleProvider"
    assert provider.config_filename == project / "compile.json"


def test_library_plugins_are_initialized_and_loaded_once(project, installer_factory, capsys):
    app = _app(project, installer_factory, "compile")
    app.bootstrap()

    extensions = app.context.provider.library_extensions
    assert [type(ext).__name__ for ext in extensions] == ["LibraryExtension", "WidgetsExtension"]
    widgets = extensions[1]
    assert widgets.initialized == 1
    assert widgets.loaded == 0

    assert app.run() == 0
    app.dispatcher.notify_libraries()

    assert widgets.loaded == 1
    assert app.context.provider.after_loaded_calls == 1
    out = capsys.readouterr().out
    assert "[qxc:compile] target=source" in out
    assert "libs/widgets" in out


def test_explicit_listen_port_wins(project, installer_factory):
    assert _app(project, installer_factory, "serve", "--listen-port", "9090").bootstrap().effective.listen_port == 9090
    assert _app(project, installer_factory, "serve").bootstrap().effective.listen_port == 8080


def test_lockfile_drift_without_force_fails_before_anything_else(project, installer_factory, write_json):
    lockfile = write_json(
        project / "qx-lock.json",
        {"version": "1.0.0", "libraries": [{"uri": "acme/widgets", "path": "libs/widgets"}]},
    )
    content = lockfile.read_text(encoding="utf-8")

    with pytest.raises(SchemaDriftError):
        _app(project, installer_factory, "compile").bootstrap()

    assert installer_factory.created == []
    assert lockfile.read_text(encoding="utf-8") == content
    assert not (project / "qx-lock.json.old").exists()


def test_lockfile_drift_with_force_migrates(project, installer_factory, write_json, monkeypatch):
    monkeypatch.chdir(project.parent)
    lockfile = write_json(
        project / "qx-lock.json",
        {"version": "1.0.0", "libraries": [{"uri": "acme/widgets", "path": "libs/widgets"}]},
    )
    original = lockfile.read_text(encoding="utf-8")

    result = _app(project, installer_factory, "compile", "--force").bootstrap()

    assert result.migration.state is MigrationState.MIGRATION_COMPLETE
    assert (project / "qx-lock.json.old").read_text(encoding="utf-8") == original
    written = json.loads(lockfile.read_text(encoding="utf-8"))
    assert written == {"version": "2.0.0", "libraries": [{"uri": "acme/widgets", "path": "libs/widgets"}]}
    assert result.effective.descriptor["packages"] == {"acme/widgets": "libs/widgets"}
    assert result.effective.descriptor["libraries"] == [".", "libs/widgets"]
    assert len(installer_factory.created) == 1


def test_missing_library_is_installed_in_one_batch(project, installer_factory):
    config_path = project / "compile.json"
    config = json.loads(config_path.read_text(encoding="utf-8"))
    config["libraries"].append("qx_packages/extra")
    config_path.write_text(json.dumps(config), encoding="utf-8")
    installer_factory.kwargs["materialize"] = [project / "qx_packages" / "extra"]

    result = _app(project, installer_factory, "compile").bootstrap()

    assert [entry.root_path.name for entry in result.libraries][-1] == "extra"
    assert installer_factory.created[0].call_names() == ["install_all"]


def test_unresolvable_library_fails(project, installer_factory):
    shutil.rmtree(project / "libs" / "widgets")

    with pytest.raises(UnresolvedLibraryError) as excinfo:
        _app(project, installer_factory, "compile").bootstrap()

    assert excinfo.value.paths == ("libs/widgets",)


def test_clean_skips_library_resolution(project, installer_factory, capsys):
    shutil.rmtree(project / "libs" / "widgets")
    output = project / "compiled" / "source"
    output.mkdir(parents=True)
    (output / "index.html").write_text("<html></html>")

    app = _app(project, installer_factory, "clean")
    assert app.run() == 0

    assert installer_factory.created == []
    assert app.context.provider.library_extensions == ()
    assert not output.exists()
    assert "[qxc:clean] deleted compiled/source" in capsys.readouterr().out


def test_config_file_option_selects_json(project, installer_factory, write_json):
    write_json(project / "alt.json", {"targets": [{"type": "build"}], "defaultTarget": "build", "libraries": []})

    result = _app(project, installer_factory, "-c", "alt.json", "compile").bootstrap()

    assert result.effective.target_type == "build"
    assert result.libraries == ()


def test_config_file_option_selects_plugin(project, installer_factory):
    (project / "compile.py").rename(project / "custom.py")

    app = _app(project, installer_factory, "compile", "--config-file", "custom.py")
    app.bootstrap()

    assert type(app.context.provider).__name__ == "SampleProvider"
    assert app.context.config_path == project / "compile.json"


def test_lockfile_sits_next_to_the_chosen_config_file(project, installer_factory):
    (project / "sub").mkdir()
    (project / "compile.py").rename(project / "sub" / "custom.py")

    app = _app(project, installer_factory, "compile", "--config-file", "sub/custom.py")
    app.bootstrap()

    assert app.context.plugin_path == project / "sub" / "custom.py"
    assert app.context.lockfile_path == project / "sub" / "qx-lock.json"


def test_settings_choose_config_file(project, installer_factory, write_json):
    write_json(project / "other.json", {"libraries": []})

    app = _app(project, installer_factory, "lint", env={"QXC_CONFIG_FILE": "other.json"})
    result = app.bootstrap()

    assert app.context.config_path == project / "other.json"
    assert result.libraries == ()


def test_missing_config_means_empty_descriptor(tmp_path, installer_factory):
    result = _app(tmp_path, installer_factory, "compile").bootstrap()

    assert result.effective.descriptor["libraries"] == []
    assert result.effective.descriptor["locales"] == []
    assert result.effective.target_type == "source"


def test_broken_project_plugin_surfaces_load_error(project, installer_factory):
    (project / "compile.py").write_text("x = 1\nraise RuntimeError('no')\n")

    with pytest.raises(PluginLoadError) as excinfo:
        _app(project, installer_factory, "compile").bootstrap()

    assert excinfo.value.lineno == 2


def test_missing_command_is_a_usage_error(project, installer_factory):
    with pytest.raises(UsageError):
        _app(project, installer_factory).bootstrap()


def test_default_extension_for_libraries_without_plugin(project, installer_factory):
    (project / "libs" / "widgets" / "compile.py").unlink()

    app = _app(project, installer_factory, "compile")
    app.bootstrap()

    assert all(type(ext) is LibraryExtension for ext in app.context.provider.library_extensions)
