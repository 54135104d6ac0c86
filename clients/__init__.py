# Infrastructure clients
from clients.postgres_client import PostgresClient
from clients.oidc_client import (
    AuthorizationRequest,
    OIDCClient,
    OIDCDiscoveryError,
    ProviderMetadata,
)
