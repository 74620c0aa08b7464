import os
from unittest.mock import patch

import pytest

from awhost.config import (
    CompositeProvider,
    EnvProvider,
    FileProvider,
    MappingProvider,
    NotSetError,
    Provider,
    ProviderChainError,
    SourceProvider,
)
from awhost.scope import Scope


class AsyncProvider:
    def __init__(self, values):
        self.values = values

    async def get(self, scope, key):
        if key not in self.values:
            raise NotSetError(f"missing '{key}'")
        return self.values[key]


class FailingProvider:
    def get(self, scope, key):
        raise RuntimeError("backend down")


class TestEnvProvider:
    """Tests for the environment provider."""

    def test_reads_environment(self):
        with patch.dict(os.environ, {"AWHOST_TEST_KEY": "value"}):
            assert EnvProvider().get(Scope.background(), "AWHOST_TEST_KEY") == "value"

    def test_empty_value_is_set(self):
        with patch.dict(os.environ, {"AWHOST_TEST_EMPTY": ""}):
            assert EnvProvider().get(Scope.background(), "AWHOST_TEST_EMPTY") == ""

    def test_missing_key(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(NotSetError, match="environment variable 'NOPE' is not set"):
                EnvProvider().get(Scope.background(), "NOPE")

    def test_is_provider(self):
        assert isinstance(EnvProvider(), Provider)
        assert not isinstance(EnvProvider(), SourceProvider)


class TestMappingProvider:
    """Tests for the in-memory provider."""

    def test_get(self):
        provider = MappingProvider({"a": "1"})
        assert provider.get(Scope.background(), "a") == "1"

    def test_missing(self):
        with pytest.raises(NotSetError, match="key 'b' is not set"):
            MappingProvider({"a": "1"}).get(Scope.background(), "b")

    def test_copies_input(self):
        values = {"a": "1"}
        provider = MappingProvider(values)
        values["a"] = "2"
        assert provider.get(Scope.background(), "a") == "1"

    def test_not_set_is_lookup_error(self):
        assert issubclass(NotSetError, LookupError)


class TestFileProvider:
    """Tests for the file backed provider."""

    def test_yaml_dotted_keys(self, sample_yaml_config):
        provider = FileProvider(sample_yaml_config)
        scope = Scope.background()
        assert provider.get(scope, "db.host") == "localhost"
        assert provider.get(scope, "db.port") == "5432"
        assert provider.get(scope, "db.debug") == "true"
        assert provider.get(scope, "name") == "svc"
        assert provider.get(scope, "tags") == '["a", "b"]'

    def test_json(self, sample_json_config):
        provider = FileProvider(sample_json_config)
        scope = Scope.background()
        assert provider.get(scope, "db.host") == "db.internal"
        assert provider.get(scope, "db.port") == "6543"
        assert provider.get(scope, "enabled") == "false"

    def test_missing_key(self, sample_yaml_config):
        with pytest.raises(NotSetError, match="key 'db.user' is not set in config.yaml"):
            FileProvider(sample_yaml_config).get(Scope.background(), "db.user")

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            FileProvider(temp_dir / "missing.yaml")

    def test_accepts_string_path(self, sample_yaml_config):
        provider = FileProvider(str(sample_yaml_config))
        assert provider.path == sample_yaml_config


class TestCompositeProvider:
    """Tests for provider chaining."""

    @pytest.mark.asyncio
    async def test_first_success_wins(self):
        provider = CompositeProvider(MappingProvider({"foo": "one"}), MappingProvider({"foo": "two"}))
        assert await provider.get(Scope.background(), "foo") == "one"

    @pytest.mark.asyncio
    async def test_falls_back(self):
        provider = CompositeProvider(FailingProvider(), MappingProvider({"foo": "bar"}))
        assert await provider.get(Scope.background(), "foo") == "bar"

    @pytest.mark.asyncio
    async def test_reports_source_label(self):
        provider = CompositeProvider(FailingProvider(), MappingProvider({"foo": "bar"}))
        value, source = await provider.get_with_source(Scope.background(), "foo")
        assert value == "bar"
        assert source.endswith("MappingProvider")

    @pytest.mark.asyncio
    async def test_custom_labels(self):
        provider = CompositeProvider(("env", EnvProvider()), ("static", MappingProvider({"x": "1"})))
        assert provider.labels == ["env", "static"]
        _, source = await provider.get_with_source(Scope.background(), "x")
        assert source == "static"

    @pytest.mark.asyncio
    async def test_async_inner_provider(self):
        provider = CompositeProvider(AsyncProvider({}), AsyncProvider({"k": "v"}))
        assert await provider.get(Scope.background(), "k") == "v"

    @pytest.mark.asyncio
    async def test_all_fail(self):
        provider = CompositeProvider(("first", FailingProvider()), ("second", MappingProvider({})))
        with pytest.raises(ProviderChainError) as exc_info:
            await provider.get(Scope.background(), "foo")
        assert str(exc_info.value) == "first: backend down\nsecond: key 'foo' is not set"
        assert [label for label, _ in exc_info.value.errors] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_empty_chain(self):
        with pytest.raises(ProviderChainError):
            await CompositeProvider().get(Scope.background(), "foo")

    def test_is_source_provider(self):
        assert isinstance(CompositeProvider(), SourceProvider)
