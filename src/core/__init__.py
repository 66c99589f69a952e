"""
PoE Data Core — cached Path of Exile wiki and trade data.

Usage:
    from core import PoeData, DataConfig
    from games.poe import create_poe_config

    poe = PoeData(create_poe_config())
    poe.refresh()
    poe.get_item_base("Iron Hat")
"""

from core.data_config import DataConfig
from core.poe_data import PoeData

__all__ = [
    "PoeData",
    "DataConfig",
]
