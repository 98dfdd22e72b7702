"""
Backend Provider Factory

Builds the configured data gateway:
- Supabase (hosted Postgres behind PostgREST)
- In-memory tables for tests and the demo
"""

from typing import Optional
import logging

from ..data.diagnostics import DiagnosticLog
from ..data.gateway import DataGateway, InMemoryGateway
from .settings import BackendConfig, BackendType, get_settings

logger = logging.getLogger(__name__)


class BackendProvider:
    """
    Factory for data gateways.

    The Supabase client is created on first use so importing the package
    never needs credentials.
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        diagnostics: Optional[DiagnosticLog] = None
    ):
        self.config = config or get_settings().backend
        self.diagnostics = diagnostics
        self._client = None
        self._gateway = None

    def get_client(self):
        """Get Supabase client instance (lazy initialization)."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def get_gateway(self) -> DataGateway:
        """Get gateway instance for the configured backend."""
        if self._gateway is None:
            self._gateway = self._create_gateway()
        return self._gateway

    def _create_gateway(self) -> DataGateway:
        backend = self.config.backend

        if backend == BackendType.IN_MEMORY:
            return InMemoryGateway(diagnostics=self.diagnostics)
        elif backend == BackendType.SUPABASE:
            from ..data.supabase_gateway import SupabaseGateway
            return SupabaseGateway(self.get_client(), diagnostics=self.diagnostics)
        else:
            raise ValueError(f"Unsupported backend: {backend}")

    def _create_client(self):
        """Create Supabase client from URL and key."""
        if not self.config.is_configured:
            raise ValueError("Supabase backend requires SUPABASE_URL and SUPABASE_KEY")

        from supabase import create_client

        logger.info("Connecting to Supabase at %s", self.config.url)
        return create_client(self.config.url, self.config.key.get_secret_value())


# Convenience functions
def get_gateway(
    config: Optional[BackendConfig] = None,
    diagnostics: Optional[DiagnosticLog] = None
) -> DataGateway:
    """Get a gateway for the configured backend."""
    return BackendProvider(config, diagnostics).get_gateway()
