from .http_client import APIClient

__all__ = ["APIClient"]
