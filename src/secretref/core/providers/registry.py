"""Provider registry: lazy, memoised construction of backend adapters."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from secretref.core.config.resolver import ResolverConfig
from secretref.core.errors import InvalidConfigError, UnknownBackendError
from secretref.core.providers.awskms import AWSKMS_OPTIONS, AwsKmsAdapter
from secretref.core.providers.awssecrets import AWSSECRETS_OPTIONS, AwsSecretsAdapter
from secretref.core.providers.base import ProviderConfig, SecretsAdapter
from secretref.core.providers.env import EnvAdapter
from secretref.core.providers.httpjson import HTTPJSON_OPTIONS, HttpJsonAdapter
from secretref.core.providers.s3 import S3_OPTIONS, S3Adapter
from secretref.core.providers.ssm import SSM_OPTIONS, SsmAdapter
from secretref.core.providers.vault import VAULT_DEFAULTS, VAULT_OPTIONS, VaultAdapter
from secretref.core.reference import ReferenceSyntax
from secretref.core.resilience.retry import build_executor
from secretref.core.singleflight import SingleFlight

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[ProviderConfig], SecretsAdapter]
"""Builds an adapter from its effective configuration without doing I/O."""


@dataclass(frozen=True)
class BackendRegistration:
    """A registered backend.

    Args:
        tag: Backend tag used in references.
        factory: Adapter constructor.
        options: Parameter names the backend understands.
        defaults: Default values for options.
        requires_expression: Whether references must carry ``#/<expression>``.
        query_in_location: Whether query items that are not options belong
            to the location instead of being rejected.
    """

    tag: str
    factory: AdapterFactory
    options: frozenset[str] = frozenset()
    defaults: Mapping[str, str] = field(default_factory=dict)
    requires_expression: bool = False
    query_in_location: bool = False

    @property
    def syntax(self) -> ReferenceSyntax:
        return ReferenceSyntax(
            options=self.options if self.query_in_location else None,
            requires_expression=self.requires_expression,
        )


class ProviderRegistry:
    """Maps backend tags to adapter constructors and caches the adapters.

    Adapters are keyed by ``(tag, effective configuration)``, so references
    that differ only in spelling (parameter order, parameters equal to the
    defaults) share one adapter and therefore one network client.  Failed
    constructions are not cached.

    Args:
        ambient: Per-backend parameters applied beneath reference parameters.
    """

    def __init__(self, ambient: Mapping[str, Mapping[str, str]] | None = None) -> None:
        self._registrations: dict[str, BackendRegistration] = {}
        self._ambient = {tag.lower(): dict(params) for tag, params in (ambient or {}).items()}
        self._adapters: SingleFlight[tuple[str, tuple[tuple[str, str], ...]], SecretsAdapter] = SingleFlight()

    def register(
        self,
        tag: str,
        factory: AdapterFactory,
        *,
        options: Iterable[str] = (),
        defaults: Mapping[str, str] | None = None,
        requires_expression: bool = False,
        query_in_location: bool = False,
    ) -> None:
        """Register (or replace) the backend for *tag*."""
        self._registrations[tag.lower()] = BackendRegistration(
            tag=tag.lower(),
            factory=factory,
            options=frozenset(options),
            defaults=dict(defaults or {}),
            requires_expression=requires_expression,
            query_in_location=query_in_location,
        )

    def is_registered(self, tag: str) -> bool:
        return tag.lower() in self._registrations

    @property
    def tags(self) -> list[str]:
        """Registered backend tags in sorted order."""
        return sorted(self._registrations)

    def syntaxes(self) -> dict[str, ReferenceSyntax]:
        """Reference syntax of every registered backend."""
        return {tag: registration.syntax for tag, registration in self._registrations.items()}

    def effective_config(
        self, tag: str, parameters: Iterable[tuple[str, str]] = ()
    ) -> ProviderConfig:
        """Merge registration defaults, ambient defaults and *parameters*.

        Raises:
            UnknownBackendError: If *tag* is not registered.
            InvalidConfigError: If a parameter is not an option of the backend.
        """
        registration = self._registration(tag)
        merged = dict(registration.defaults)
        merged.update(
            (key, value)
            for key, value in self._ambient.get(registration.tag, {}).items()
            if key in registration.options
        )
        for key, value in parameters:
            if key not in registration.options:
                raise InvalidConfigError(
                    f"unknown option '{key}' (supported: {', '.join(sorted(registration.options)) or 'none'})",
                    backend=registration.tag,
                )
            merged[key] = value
        return ProviderConfig(merged)

    def resolve(self, tag: str, parameters: Iterable[tuple[str, str]] = ()) -> SecretsAdapter:
        """Return the adapter for *tag* and *parameters*, constructing it once.

        Raises:
            UnknownBackendError: If *tag* is not registered.
            InvalidConfigError: If the configuration is rejected.
        """
        registration = self._registration(tag)
        config = self.effective_config(tag, parameters)
        key = (registration.tag, config.fingerprint)
        return self._adapters.get_or_create(key, lambda: self._construct(registration, config))

    def clear(self) -> None:
        """Drop every cached adapter."""
        self._adapters.clear()

    def __len__(self) -> int:
        """Number of cached adapters."""
        return len(self._adapters)

    def _registration(self, tag: str) -> BackendRegistration:
        registration = self._registrations.get(tag.lower())
        if registration is None:
            raise UnknownBackendError(tag)
        return registration

    @staticmethod
    def _construct(registration: BackendRegistration, config: ProviderConfig) -> SecretsAdapter:
        logger.debug("Constructing %s adapter with %r", registration.tag, config)
        try:
            return registration.factory(config)
        except InvalidConfigError as exc:
            exc.add_context(registration.tag)
            raise
        except (ValueError, KeyError, TypeError) as exc:
            raise InvalidConfigError(
                f"failed to configure backend: {exc}", backend=registration.tag
            ) from exc


def create_default_registry(config: ResolverConfig | None = None) -> ProviderRegistry:
    """Build a registry with every built-in backend.

    This is the composition root: the ambient *config* supplies per-backend
    defaults, the adapter retry policy, the HTTP timeout and the meta-keys
    field.
    """
    config = config or ResolverConfig()
    executor = build_executor(config.retry)
    registry = ProviderRegistry(ambient=config.defaults)

    registry.register("env", EnvAdapter)
    registry.register(
        "ssm",
        lambda cfg: SsmAdapter(cfg, executor),
        options=SSM_OPTIONS,
        defaults={"recursive": "false"},
    )
    registry.register(
        "awssecrets",
        lambda cfg: AwsSecretsAdapter(cfg, executor, meta_keys_field=config.meta_keys_field),
        options=AWSSECRETS_OPTIONS,
    )
    registry.register(
        "awskms",
        lambda cfg: AwsKmsAdapter(cfg, executor),
        options=AWSKMS_OPTIONS,
    )
    registry.register(
        "s3",
        lambda cfg: S3Adapter(cfg, executor),
        options=S3_OPTIONS,
    )
    registry.register(
        "vault",
        lambda cfg: VaultAdapter(cfg, executor),
        options=VAULT_OPTIONS,
        defaults=VAULT_DEFAULTS,
    )
    registry.register(
        "httpjson",
        lambda cfg: HttpJsonAdapter(cfg, executor, timeout_seconds=config.http_timeout_seconds),
        options=HTTPJSON_OPTIONS,
        defaults={"insecure": "false", "floatAsInt": "false"},
        requires_expression=True,
        query_in_location=True,
    )
    return registry
