#!/usr/bin/env python3
"""Create an API key for the admin API.

    python -m cardano_scanner.tools.create_api_key NAME [PERMISSION ...]

Permissions are any of ``read``, ``write``, ``admin`` (default ``read``).
The plain key is printed once; only its hash is stored.

The database is taken from the usual ``SCANNER_`` settings
(``SCANNER_DB__DSN``, ``SCANNER_CONFIG_PATH``).
"""

from __future__ import annotations

import asyncio
import sys

from cardano_scanner.config.settings import AppConfig
from cardano_scanner.engine.client import ScannerEngine


async def _create(name: str, permissions: list[str]) -> None:
    config = AppConfig()
    # Only the datastore is needed here.
    config.monitor.enabled = False
    config.task.enabled = False
    config.metrics.enabled = False

    engine = ScannerEngine(config)
    await engine.initialize()
    try:
        api_key, plain = await engine.api_key_service.create_api_key(name, permissions)
    finally:
        await engine.close()

    print("=" * 60)
    print(f"API key created: {api_key.name} ({api_key.id})")
    print(f"Permissions:     {', '.join(api_key.permissions)}")
    print()
    print(f"  {plain}")
    print()
    print("Store this key now; it cannot be shown again.")
    print("Send it as:  Authorization: Bearer <key>")


def main() -> None:
    """CLI entry point."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    name = sys.argv[1]
    permissions = [p.lower() for p in sys.argv[2:]] or ["read"]
    try:
        asyncio.run(_create(name, permissions))
    except ValueError as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
