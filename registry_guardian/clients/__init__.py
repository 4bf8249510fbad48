"""Registry Guardian — external clients (store, webhooks)."""

from registry_guardian.clients.store import COLLECTION_TABLES, InMemoryRegistryStore, RegistryStore
from registry_guardian.clients.webhook import LogNotifier, Notifier, WebhookNotifier

__all__ = [
    "COLLECTION_TABLES",
    "InMemoryRegistryStore",
    "LogNotifier",
    "Notifier",
    "RegistryStore",
    "WebhookNotifier",
]
