import pytest

from awhost.config.loaders import flatten, load_file


class TestLoadFile:
    """Tests for configuration file loading."""

    def test_load_yaml(self, sample_yaml_config):
        data = load_file(sample_yaml_config)
        assert data["db"]["host"] == "localhost"
        assert data["tags"] == ["a", "b"]

    def test_load_json(self, sample_json_config):
        data = load_file(sample_json_config)
        assert data["db"]["port"] == 6543

    def test_load_yml_suffix(self, temp_dir):
        path = temp_dir / "config.yml"
        path.write_text("key: value\n")
        assert load_file(path) == {"key": "value"}

    def test_empty_file(self, temp_dir):
        path = temp_dir / "empty.yaml"
        path.write_text("")
        assert load_file(path) == {}

    def test_null_document(self, temp_dir):
        path = temp_dir / "null.yaml"
        path.write_text("~\n")
        assert load_file(path) == {}

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_file(temp_dir / "missing.yaml")

    def test_directory(self, temp_dir):
        with pytest.raises(IsADirectoryError):
            load_file(temp_dir)

    def test_invalid_suffix(self, temp_dir):
        path = temp_dir / "config.toml"
        path.write_text("key = 1\n")
        with pytest.raises(RuntimeError, match="Invalid file type given: config.toml"):
            load_file(path)

    def test_top_level_list(self, temp_dir):
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(RuntimeError, match="mapping at the top level"):
            load_file(path)


class TestFlatten:
    """Tests for dotted key flattening."""

    def test_nested(self):
        assert flatten({"db": {"host": "h", "port": 5432}}) == {"db.host": "h", "db.port": "5432"}

    def test_booleans(self):
        assert flatten({"on": True, "off": False}) == {"on": "true", "off": "false"}

    def test_none_dropped(self):
        assert flatten({"a": None, "b": 1}) == {"b": "1"}

    def test_lists_as_json(self):
        assert flatten({"a": [1, "x"]}) == {"a": '[1, "x"]'}

    def test_floats(self):
        assert flatten({"rate": 0.5}) == {"rate": "0.5"}

    def test_prefix(self):
        assert flatten({"a": 1}, prefix="root.") == {"root.a": "1"}
