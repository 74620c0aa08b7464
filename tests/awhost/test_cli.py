import logging

import pytest

from awhost import config
from awhost.__main__ import create_parser, main, verbosity_level
from awhost.config import CompositeProvider


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo the handler and level the CLI installs on the root logger."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def app_module(temp_dir, monkeypatch):
    """Write an app module and run from its directory."""
    monkeypatch.chdir(temp_dir)
    path = temp_dir / "awhost_cli_app.py"
    path.write_text("""
from awhost import App


class Quick:
    def run(self, scope):
        pass


class Fail:
    def setup(self, scope):
        raise ValueError("setup failed")


class Interrupt:
    def setup(self, scope):
        raise KeyboardInterrupt()


ok = App().host(Quick())
failing = App().initialize(Fail())
interrupted = App().initialize(Interrupt())
""")
    return path


class TestParser:
    """Tests for command line parsing."""

    def test_defaults(self):
        args = create_parser().parse_args(["pkg:app"])
        assert args.target == "pkg:app"
        assert args.config_path is None
        assert args.verbose == 0

    def test_options(self):
        args = create_parser().parse_args(["-c", "conf.yaml", "-vv", "pkg:app"])
        assert str(args.config_path) == "conf.yaml"
        assert args.verbose == 2

    def test_target_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])


class TestVerbosity:
    """Tests for verbosity mapping."""

    def test_default_level(self):
        assert verbosity_level(0, "WARNING") == logging.WARNING
        assert verbosity_level(0, "ERROR") == logging.ERROR

    def test_counts(self):
        assert verbosity_level(1) == logging.INFO
        assert verbosity_level(2) == logging.DEBUG
        assert verbosity_level(5) == logging.DEBUG


class TestMain:
    """Tests for the CLI entry point."""

    def test_success(self, app_module, reset_sys_modules):
        assert main([f"{app_module}:ok"]) == 0

    def test_failure(self, app_module, reset_sys_modules):
        assert main([f"{app_module}:failing"]) == 1

    def test_keyboard_interrupt(self, app_module, reset_sys_modules):
        assert main([f"{app_module}:interrupted"]) == 130

    def test_bad_target(self, app_module, reset_sys_modules):
        assert main(["no-colon"]) == 1

    def test_installs_file_provider(self, app_module, reset_sys_modules, sample_yaml_config):
        assert main(["-c", str(sample_yaml_config), f"{app_module}:ok"]) == 0
        assert isinstance(config.inspector().provider, CompositeProvider)
