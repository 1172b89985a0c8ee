"""Game client adapters (capability protocols and the mineflayer backend)."""

from .game_interface import (
    Actuator,
    BackendUnavailableError,
    BlockInfo,
    BotConnection,
    ChatChannel,
    Connector,
    EntityInfo,
    ItemStack,
    WorldView,
)
from .live_minecraft import MineflayerConnector, MineflayerUnavailableError

__all__ = [
    "Actuator",
    "BackendUnavailableError",
    "BlockInfo",
    "BotConnection",
    "ChatChannel",
    "Connector",
    "EntityInfo",
    "ItemStack",
    "MineflayerConnector",
    "MineflayerUnavailableError",
    "WorldView",
]
