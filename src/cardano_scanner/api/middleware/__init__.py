"""API middleware — auth, CORS."""

from cardano_scanner.api.middleware.auth import ApiKeyContext
from cardano_scanner.api.middleware.cors import setup_cors

__all__ = ["ApiKeyContext", "setup_cors"]
