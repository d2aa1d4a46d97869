"""
signer-provider - JSON-RPC provider that signs locally and relays upstream.

Intercepts eth_accounts, eth_getTransactionCount, eth_gasPrice,
eth_sendTransaction and the signing methods; forwards everything else to
the upstream transport unchanged.

Logging goes through loguru and is disabled for this package until an
application calls ``logger.enable("signer_provider")``.
"""
__all__ = [
    # Dispatcher
    "SignerProvider",
    "build_response",
    # Pipeline
    "QueuedTransaction",
    "SubmissionPipeline",
    "merge_transaction",
    # Capabilities
    "CapabilitySet",
    "local_capabilities",
    # Transport
    "EthRPC",
    "HttpTransport",
    "Transport",
    # Settings
    "ProviderSettings",
    # Errors
    "CapabilityError",
    "ConfigurationError",
    "PipelineError",
    "ProviderError",
    "TransportError",
]

from loguru import logger

from .capabilities import CapabilitySet
from .config import ProviderSettings
from .errors import (
    CapabilityError,
    ConfigurationError,
    PipelineError,
    ProviderError,
    TransportError,
)
from .pipeline import QueuedTransaction, SubmissionPipeline, merge_transaction
from .provider import SignerProvider, build_response
from .signers.local import local_capabilities
from .transport import EthRPC, HttpTransport, Transport

logger.disable("signer_provider")
