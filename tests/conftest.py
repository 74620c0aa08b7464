import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from awhost import config, depend  # noqa: E402


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_yaml_config(temp_dir):
    """Create a sample YAML config file."""
    config_path = temp_dir / "config.yaml"
    config_path.write_text("""
db:
  host: localhost
  port: 5432
  debug: true
name: svc
tags:
  - a
  - b
""")
    return config_path


@pytest.fixture
def sample_json_config(temp_dir):
    """Create a sample JSON config file."""
    config_path = temp_dir / "config.json"
    config_path.write_text("""{
    "db": {"host": "db.internal", "port": 6543},
    "enabled": false
}""")
    return config_path


@pytest.fixture(autouse=True)
def clean_registries():
    """Reset the dependency container, the provider and the parsers around each test."""
    depend.clear()
    config.reset_provider()
    config.reset_parsers()
    yield
    depend.clear()
    config.reset_provider()
    config.reset_parsers()


@pytest.fixture
def reset_sys_modules():
    """Reset sys.modules for module loader tests."""
    original_modules = set(sys.modules.keys())
    yield
    # Remove any modules added during the test
    new_modules = set(sys.modules.keys()) - original_modules
    for mod in new_modules:
        if not mod.startswith(('pytest', '_pytest', 'pluggy')):
            sys.modules.pop(mod, None)
