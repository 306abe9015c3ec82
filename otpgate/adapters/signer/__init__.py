"""Session signer adapters - Bearer token implementations."""

from .tokens import JwtSessionSigner

__all__ = ["JwtSessionSigner"]
