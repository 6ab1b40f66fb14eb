"""
Adapters package - External service connections.
Identity provider adapters (token verification and auth-state push).
"""

from adapters import identity_provider

__all__ = ["identity_provider"]
