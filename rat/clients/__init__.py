"""Client singletons for external API interactions."""
from rat.clients.http_client import HttpClient

__all__ = ["HttpClient"]
