"""
Adapters layer - Persistence and message delivery.
"""

from .console_mailer import ConsoleMailer
from .registry_store import RegistryStore, dump_registry, load_registry

__all__ = ["ConsoleMailer", "RegistryStore", "dump_registry", "load_registry"]
