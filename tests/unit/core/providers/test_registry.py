"""Tests for the provider registry."""

from __future__ import annotations

import pytest

from secretref.core.config.resolver import ResolverConfig
from secretref.core.config.retry import RetryConfig
from secretref.core.errors import InvalidConfigError, UnknownBackendError
from secretref.core.providers.awssecrets import AwsSecretsAdapter
from secretref.core.providers.base import ProviderConfig
from secretref.core.providers.httpjson import HttpJsonAdapter
from secretref.core.providers.registry import ProviderRegistry, create_default_registry
from secretref.core.providers.ssm import SsmAdapter
from secretref.core.providers.vault import VaultAdapter
from secretref.core.resilience.retry import NoRetry, RetryExecutor
from tests.factories import FakeAdapter, make_registry


class TestRegistration:
    def test_register_and_lookup(self) -> None:
        registry, _ = make_registry()
        assert registry.is_registered("fake")
        assert registry.is_registered("FAKE")
        assert not registry.is_registered("other")
        assert registry.tags == ["fake"]

    def test_register_replaces(self) -> None:
        registry, built = make_registry()
        registry.register("fake", lambda cfg: FakeAdapter(cfg, {"x": "replaced"}))
        adapter = registry.resolve("fake")
        assert built == []
        assert adapter.fetch_scalar("x") == "replaced"

    def test_syntaxes(self) -> None:
        registry = ProviderRegistry()
        registry.register("plain", FakeAdapter, options=["a"])
        registry.register("http", FakeAdapter, options=["a"], requires_expression=True, query_in_location=True)

        syntaxes = registry.syntaxes()

        assert syntaxes["plain"].options is None
        assert syntaxes["plain"].requires_expression is False
        assert syntaxes["http"].options == frozenset({"a"})
        assert syntaxes["http"].requires_expression is True


class TestEffectiveConfig:
    def test_defaults_ambient_and_parameters_layer(self) -> None:
        registry, _ = make_registry(
            options=("region", "profile", "stage"),
            defaults={"region": "us-east-1", "stage": "current"},
            ambient={"fake": {"region": "eu-west-1", "profile": "dev", "ignored": "x"}},
        )

        config = registry.effective_config("fake", [("stage", "previous")])

        assert dict(config) == {"region": "eu-west-1", "profile": "dev", "stage": "previous"}

    def test_unknown_option(self) -> None:
        registry, _ = make_registry(options=("region",))
        with pytest.raises(InvalidConfigError, match="unknown option 'regoin'") as exc_info:
            registry.effective_config("fake", [("regoin", "x")])
        assert exc_info.value.backend == "fake"

    def test_unknown_backend(self) -> None:
        registry, _ = make_registry()
        with pytest.raises(UnknownBackendError):
            registry.effective_config("nope")


class TestResolve:
    def test_same_config_same_instance(self) -> None:
        registry, built = make_registry()
        first = registry.resolve("fake", [("region", "us-east-1")])
        second = registry.resolve("FAKE", [("region", "us-east-1")])
        assert first is second
        assert len(built) == 1
        assert len(registry) == 1

    def test_default_spelled_out_shares_instance(self) -> None:
        registry, built = make_registry(defaults={"region": "us-east-1"})
        first = registry.resolve("fake")
        second = registry.resolve("fake", [("region", "us-east-1")])
        assert first is second
        assert len(built) == 1

    def test_different_config_different_instance(self) -> None:
        registry, built = make_registry()
        first = registry.resolve("fake", [("region", "us-east-1")])
        second = registry.resolve("fake", [("region", "eu-west-1")])
        assert first is not second
        assert len(built) == 2
        assert first.config["region"] == "us-east-1"

    def test_unknown_backend_constructs_nothing(self) -> None:
        registry, built = make_registry()
        with pytest.raises(UnknownBackendError, match="gcp"):
            registry.resolve("gcp")
        assert built == []
        assert len(registry) == 0

    def test_factory_value_error_becomes_invalid_config(self) -> None:
        registry = ProviderRegistry()

        def factory(config: ProviderConfig) -> FakeAdapter:
            raise ValueError("bad region")

        registry.register("broken", factory)

        with pytest.raises(InvalidConfigError, match="bad region") as exc_info:
            registry.resolve("broken")
        assert exc_info.value.backend == "broken"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_failed_construction_not_cached(self) -> None:
        attempts: list[int] = []
        registry = ProviderRegistry()

        def factory(config: ProviderConfig) -> FakeAdapter:
            attempts.append(1)
            if len(attempts) == 1:
                raise InvalidConfigError("not yet")
            return FakeAdapter(config)

        registry.register("flaky", factory)

        with pytest.raises(InvalidConfigError) as exc_info:
            registry.resolve("flaky")
        assert exc_info.value.backend == "flaky"
        assert isinstance(registry.resolve("flaky"), FakeAdapter)
        assert len(attempts) == 2

    def test_clear(self) -> None:
        registry, built = make_registry()
        first = registry.resolve("fake")
        registry.clear()
        assert registry.resolve("fake") is not first
        assert len(built) == 2


class TestDefaultRegistry:
    def test_builtin_backends(self) -> None:
        registry = create_default_registry()
        assert registry.tags == ["awskms", "awssecrets", "env", "httpjson", "s3", "ssm", "vault"]

    def test_ssm_uses_no_retry_by_default(self) -> None:
        adapter = create_default_registry().resolve("ssm", [("region", "eu-west-1")])
        assert isinstance(adapter, SsmAdapter)
        assert isinstance(adapter._executor, NoRetry)

    def test_retry_config_builds_executor(self) -> None:
        config = ResolverConfig(retry=RetryConfig(max_attempts=5))
        adapter = create_default_registry(config).resolve("ssm")
        assert isinstance(adapter._executor, RetryExecutor)
        assert adapter._executor.config.max_attempts == 5

    def test_ambient_defaults(self) -> None:
        config = ResolverConfig(defaults={"ssm": {"region": "ap-south-1"}})
        adapter = create_default_registry(config).resolve("ssm")
        assert adapter.config["region"] == "ap-south-1"

    def test_meta_keys_field_passed_through(self) -> None:
        config = ResolverConfig(meta_keys_field="children")
        adapter = create_default_registry(config).resolve("awssecrets")
        assert isinstance(adapter, AwsSecretsAdapter)
        assert adapter._meta_keys_field == "children"

    def test_httpjson_defaults_and_timeout(self) -> None:
        config = ResolverConfig(http_timeout_seconds=2.5)
        adapter = create_default_registry(config).resolve("httpjson")
        assert isinstance(adapter, HttpJsonAdapter)
        assert adapter._timeout == 2.5
        assert adapter.config["insecure"] == "false"

    def test_vault_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_ADDR", "https://vault:8200")
        adapter = create_default_registry().resolve("vault")
        assert isinstance(adapter, VaultAdapter)
        assert adapter.config["mount_point"] == "secret"
        assert adapter.config["field"] == "value"

    def test_vault_without_address_is_invalid_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        with pytest.raises(InvalidConfigError) as exc_info:
            create_default_registry().resolve("vault")
        assert exc_info.value.backend == "vault"

    def test_invalid_ssm_flag_not_cached(self) -> None:
        registry = create_default_registry()
        with pytest.raises(InvalidConfigError) as exc_info:
            registry.resolve("ssm", [("recursive", "maybe")])
        assert exc_info.value.backend == "ssm"
        assert len(registry) == 0

    def test_env_rejects_options(self) -> None:
        with pytest.raises(InvalidConfigError, match="supported: none"):
            create_default_registry().resolve("env", [("region", "x")])
