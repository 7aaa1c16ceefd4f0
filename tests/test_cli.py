import sys
import types

import pytest

from quizmaster import cli


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "quizmaster"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


def test_version_command_handles_missing_package(monkeypatch, capsys):
    monkeypatch.setattr(
        cli.metadata,
        "version",
        lambda name: (_ for _ in ()).throw(cli.metadata.PackageNotFoundError()),
    )
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: quizmaster" in captured.out
    assert "Available commands:" in captured.out


def test_help_flag_shows_usage(capsys):
    code = cli.main(["--help"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Usage: quizmaster" in captured.out


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    for name in ("init", "serve", "generate", "play"):
        assert name in captured.out
    assert "(TUI)" in captured.out


def test_help_known_command(capsys):
    code = cli.main(["help", "serve"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Run `quizmaster serve --help`" in captured.out


def test_help_unknown_command(capsys):
    code = cli.main(["help", "does-not-exist"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err


def test_version_flag(capsys):
    code = cli.main(["--version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "0.0-test"


def test_unknown_command_errors(capsys):
    code = cli.main(["bogus"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err
    assert "Available commands:" in captured.err


def test_dispatch_invokes_named_function_with_passthrough(monkeypatch):
    before = list(sys.argv)
    captured: dict[str, list[str]] = {}

    def fake_import(module_name: str):
        assert module_name == "quizmaster.provider.cli"

        def stub_serve(argv):
            captured["argv"] = list(argv)
            captured["sys_argv"] = list(sys.argv)
            return 7

        return types.SimpleNamespace(serve_main=stub_serve)

    monkeypatch.setattr(cli, "import_module", fake_import)
    code = cli.main(["serve", "--port", "9000"])
    assert code == 7
    assert captured["argv"] == ["--port", "9000"]
    assert captured["sys_argv"][0] == "quizmaster serve"
    assert list(sys.argv) == before


def test_dispatch_supports_main_without_parameters(monkeypatch):
    called = {"count": 0}

    def fake_import(module_name: str):
        def stub_main():
            called["count"] += 1

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    assert cli.main(["play"]) == 0
    assert called["count"] == 1


@pytest.mark.parametrize(
    "exit_arg, expected",
    [(5, 5), (None, 0), ("boom", 1)],
)
def test_dispatch_normalizes_system_exit(monkeypatch, capsys, exit_arg, expected):
    def fake_import(module_name: str):
        def stub_main(argv):
            raise SystemExit(exit_arg)

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    assert cli.main(["init"]) == expected
    if exit_arg == "boom":
        assert capsys.readouterr().err.strip() == "boom"


def test_init_writes_template_end_to_end(tmp_path, capsys):
    target = tmp_path / "quizmaster.toml"

    code = cli.main(["init", "--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert target.exists()
    assert "[generation.primary]" in target.read_text(encoding="utf-8")
    assert "Created template" in captured.out


def test_init_refuses_to_overwrite_without_force(tmp_path, capsys):
    target = tmp_path / "quizmaster.toml"
    target.write_text("existing", encoding="utf-8")

    assert cli.main(["init", "--path", str(target)]) == 2
    assert "Config already exists" in capsys.readouterr().out
    assert target.read_text(encoding="utf-8") == "existing"

    assert cli.main(["init", "--path", str(target), "--force"]) == 0
    assert "[quiz]" in target.read_text(encoding="utf-8")
