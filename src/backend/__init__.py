"""Client for the remote training/inference service."""
from .client import BackendClient, BackendConfig

__all__ = ["BackendClient", "BackendConfig"]
