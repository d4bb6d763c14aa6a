"""
Signer interface for the Brink SDK.

A signer is anything that can sign a 32-byte digest for an owner address:
a raw private key (``LocalSigner``), a hardware wallet or a remote signing
service.
"""
from .base import Signer
from .local import LocalSigner

__all__ = ["Signer", "LocalSigner"]
