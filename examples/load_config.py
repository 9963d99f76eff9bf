"""Example of loading resolver configuration and resolving an application config."""

import logging
import os
from pathlib import Path

from secretref.core.config import load_from_file
from secretref.core.config.evaluate import evaluate_config
from secretref.core.resolver import ReferenceResolver

APP_CONFIG = {
    "database": {
        "host": "db.internal",
        "user": "ref+env://EXAMPLE_DB_USER",
        "password": "ref+env://EXAMPLE_DB_CREDENTIALS#/password",
    },
    "features": ["search", "export"],
}


def main() -> None:
    """Load the HOCON resolver configuration and resolve an in-memory config."""
    config = load_from_file(str(Path(__file__).parent / "secretref.conf"))

    logging.basicConfig(level=config.logging.level.value, format=config.logging.format)

    print(f"Backend defaults: {sorted(config.defaults)}")
    print(f"HTTP timeout: {config.http_timeout_seconds}s")
    if config.retry is not None:
        print(f"Retry: up to {config.retry.max_attempts} attempts")

    # Demo values; real deployments point at ssm://, vault:// etc.
    os.environ.setdefault("EXAMPLE_DB_USER", "app")
    os.environ.setdefault("EXAMPLE_DB_CREDENTIALS", '{"password": "example-only"}')

    resolver = ReferenceResolver(config=config)
    resolved = evaluate_config(APP_CONFIG, resolver)

    print(f"\nResolved database user: {resolved['database']['user']}")
    print(f"Password resolved: {bool(resolved['database']['password'])}")
    print(f"Registered backends: {', '.join(resolver.registry.tags)}")


if __name__ == "__main__":
    main()
