"""Backend adapters and the provider registry."""

from secretref.core.providers.awskms import AwsKmsAdapter
from secretref.core.providers.awssecrets import AwsSecretsAdapter
from secretref.core.providers.base import MappingResult, MappingShape, ProviderConfig, SecretsAdapter
from secretref.core.providers.env import EnvAdapter
from secretref.core.providers.httpjson import HttpJsonAdapter
from secretref.core.providers.registry import (
    BackendRegistration,
    ProviderRegistry,
    create_default_registry,
)
from secretref.core.providers.s3 import S3Adapter
from secretref.core.providers.ssm import SsmAdapter
from secretref.core.providers.vault import VaultAdapter

__all__ = [
    "AwsKmsAdapter",
    "AwsSecretsAdapter",
    "BackendRegistration",
    "EnvAdapter",
    "HttpJsonAdapter",
    "MappingResult",
    "MappingShape",
    "ProviderConfig",
    "ProviderRegistry",
    "S3Adapter",
    "SecretsAdapter",
    "SsmAdapter",
    "VaultAdapter",
    "create_default_registry",
]
