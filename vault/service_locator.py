"""Service locator for process-wide vault components."""

from typing import Optional

from vault.discord_client import DiscordClient
from vault.events import EventBus
from vault.ledger import FileLedger
from vault.services.batch_service import BatchService
from vault.services.history_service import HistoryService
from vault.services.transfer_service import TransferService
from vault.settings import SettingsRegistry

_discord_client: Optional[DiscordClient] = None
_settings_registry: Optional[SettingsRegistry] = None
_event_bus: Optional[EventBus] = None


def set_discord_client(client: DiscordClient):
    """Set global remote client instance"""
    global _discord_client
    _discord_client = client


def get_discord_client() -> DiscordClient:
    """Get global remote client instance, creating it on first use"""
    global _discord_client
    if _discord_client is None:
        _discord_client = DiscordClient()
    return _discord_client


def set_settings_registry(registry: SettingsRegistry):
    """Set global settings registry instance"""
    global _settings_registry
    _settings_registry = registry


def get_settings_registry() -> SettingsRegistry:
    """Get global settings registry instance, creating it on first use"""
    global _settings_registry
    if _settings_registry is None:
        _settings_registry = SettingsRegistry()
    return _settings_registry


def set_event_bus(bus: EventBus):
    """Set global event bus instance"""
    global _event_bus
    _event_bus = bus


def get_event_bus() -> EventBus:
    """Get global event bus instance, creating it on first use"""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def get_transfer_service() -> TransferService:
    return TransferService(get_discord_client(), FileLedger(), HistoryService())


def get_batch_service() -> BatchService:
    return BatchService(get_transfer_service(), get_event_bus(), HistoryService())


def reset():
    """Drop all cached instances."""
    global _discord_client, _settings_registry, _event_bus
    _discord_client = None
    _settings_registry = None
    _event_bus = None
