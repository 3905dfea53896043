"""Character age and equipment models"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class ItemSlot(str, Enum):
    """Equipment slots on a character"""
    CLOTHING = "clothing"
    WEAPON = "weapon"
    ACCESSORY = "accessory"
    HEADGEAR = "headgear"


class CharacterAge(BaseModel):
    """An era the character advances through by level"""
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    min_level: int
    max_level: Optional[int] = None  # None: open-ended
    description: str = ""

    def contains(self, level: int) -> bool:
        return level >= self.min_level and (self.max_level is None or level <= self.max_level)


class CharacterItem(BaseModel):
    """Equipment item unlocked at a given level"""
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    slot: ItemSlot
    age_key: str
    unlock_level: int
    rarity: str = "common"
    is_default: bool = False
