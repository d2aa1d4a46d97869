"""
Signers - capability backends for the signer provider.

The provider itself never touches key material; a backend turns whatever
holds the key into a CapabilitySet.
"""

from .local import load_account, local_capabilities

__all__ = ["load_account", "local_capabilities"]
