"""
Character Progression System

The character advances through historical ages as the user levels up, and
each age offers equipment unlocked at specific levels.

Ages:
- Stone (1-9), Bronze (10-19), Iron (20-29), Medieval (30-39)
- Renaissance (40-49), Industrial (50-59), Modern (60-74)
- Digital (75-99), Space (100+)

Eligibility is a pure function of level; nothing is persisted here.
"""

from typing import Dict, List, Optional
import logging

from quest_engine.exceptions import ValidationError
from quest_engine.models.character import CharacterAge, CharacterItem, ItemSlot

logger = logging.getLogger(__name__)

AGES: List[CharacterAge] = [
    CharacterAge(key="stone", name="Stone Age", min_level=1, max_level=9,
                 description="The dawn of civilization. Primitive tools and the beginning of your journey."),
    CharacterAge(key="bronze", name="Bronze Age", min_level=10, max_level=19,
                 description="Early metalworking emerges. Craft bronze tools and weapons."),
    CharacterAge(key="iron", name="Iron Age", min_level=20, max_level=29,
                 description="Stronger metals forge stronger warriors."),
    CharacterAge(key="medieval", name="Medieval Age", min_level=30, max_level=39,
                 description="Castles rise, knights ride, and kingdoms expand."),
    CharacterAge(key="renaissance", name="Renaissance", min_level=40, max_level=49,
                 description="Art, science, and culture flourish."),
    CharacterAge(key="industrial", name="Industrial Age", min_level=50, max_level=59,
                 description="Steam power and machinery revolutionize productivity."),
    CharacterAge(key="modern", name="Modern Age", min_level=60, max_level=74,
                 description="Electricity, automobiles, and modern conveniences transform daily life."),
    CharacterAge(key="digital", name="Digital Age", min_level=75, max_level=99,
                 description="Computers, internet, and information technology connect the world."),
    CharacterAge(key="space", name="Space Age", min_level=100, max_level=None,
                 description="Beyond Earth. Space exploration and limitless possibilities."),
]

_C, _W, _A, _H = ItemSlot.CLOTHING, ItemSlot.WEAPON, ItemSlot.ACCESSORY, ItemSlot.HEADGEAR

# (key, name, slot, age, unlock level, rarity, is_default)
_ITEM_ROWS = [
    ("stone_fur_basic", "Animal Hide", _C, "stone", 1, "common", True),
    ("stone_fur_decorated", "Decorated Hide", _C, "stone", 5, "rare", False),
    ("stone_club", "Wooden Club", _W, "stone", 1, "common", True),
    ("stone_spear", "Stone Spear", _W, "stone", 3, "common", False),
    ("stone_axe", "Stone Axe", _W, "stone", 6, "rare", False),
    ("stone_bone_necklace", "Bone Necklace", _A, "stone", 1, "common", True),
    ("stone_shell_bracelet", "Shell Bracelet", _A, "stone", 4, "rare", False),
    ("stone_headband", "Leather Headband", _H, "stone", 1, "common", True),
    ("stone_fur_hood", "Fur Hood", _H, "stone", 7, "epic", False),

    ("bronze_tunic", "Bronze Age Tunic", _C, "bronze", 10, "common", True),
    ("bronze_armor", "Bronze Breastplate", _C, "bronze", 15, "epic", False),
    ("bronze_sword", "Bronze Sword", _W, "bronze", 10, "rare", False),
    ("bronze_dagger", "Bronze Dagger", _W, "bronze", 12, "common", False),
    ("bronze_ring", "Bronze Ring", _A, "bronze", 11, "common", False),
    ("bronze_amulet", "Bronze Amulet", _A, "bronze", 16, "rare", False),
    ("bronze_cap", "Bronze Cap", _H, "bronze", 13, "rare", False),

    ("iron_chainmail", "Chainmail Shirt", _C, "iron", 20, "rare", True),
    ("iron_armor", "Iron Plate Armor", _C, "iron", 25, "epic", False),
    ("iron_longsword", "Iron Longsword", _W, "iron", 20, "rare", False),
    ("iron_battle_axe", "Battle Axe", _W, "iron", 24, "epic", False),
    ("iron_shield", "Iron Shield", _A, "iron", 22, "rare", False),
    ("iron_helmet", "Iron Helmet", _H, "iron", 21, "rare", False),
    ("iron_horned_helmet", "Horned Helmet", _H, "iron", 27, "legendary", False),

    ("medieval_knight_armor", "Knight Armor", _C, "medieval", 30, "epic", True),
    ("medieval_royal_robes", "Royal Robes", _C, "medieval", 35, "legendary", False),
    ("medieval_broadsword", "Broadsword", _W, "medieval", 30, "rare", False),
    ("medieval_mace", "Iron Mace", _W, "medieval", 33, "epic", False),
    ("medieval_excalibur", "Legendary Blade", _W, "medieval", 37, "legendary", False),
    ("medieval_banner", "House Banner", _A, "medieval", 32, "rare", False),
    ("medieval_crown", "Royal Crown", _H, "medieval", 38, "legendary", False),

    ("renaissance_doublet", "Elegant Doublet", _C, "renaissance", 40, "rare", True),
    ("renaissance_scholar_robes", "Scholar Robes", _C, "renaissance", 45, "epic", False),
    ("renaissance_rapier", "Rapier", _W, "renaissance", 40, "rare", False),
    ("renaissance_musket", "Early Musket", _W, "renaissance", 46, "epic", False),
    ("renaissance_quill", "Golden Quill", _A, "renaissance", 42, "rare", False),
    ("renaissance_hat", "Feathered Hat", _H, "renaissance", 43, "rare", False),

    ("industrial_suit", "Industrial Suit", _C, "industrial", 50, "common", True),
    ("industrial_engineer_coat", "Engineer Coat", _C, "industrial", 55, "epic", False),
    ("industrial_revolver", "Revolver", _W, "industrial", 50, "rare", False),
    ("industrial_rifle", "Rifle", _W, "industrial", 54, "epic", False),
    ("industrial_pocket_watch", "Pocket Watch", _A, "industrial", 52, "rare", False),
    ("industrial_top_hat", "Top Hat", _H, "industrial", 53, "rare", False),
    ("industrial_goggles", "Steam Goggles", _H, "industrial", 57, "epic", False),

    ("modern_business_suit", "Business Suit", _C, "modern", 60, "common", True),
    ("modern_tactical_gear", "Tactical Gear", _C, "modern", 67, "epic", False),
    ("modern_pistol", "Modern Pistol", _W, "modern", 60, "rare", False),
    ("modern_assault_rifle", "Assault Rifle", _W, "modern", 70, "epic", False),
    ("modern_smartphone", "Smartphone", _A, "modern", 62, "rare", False),
    ("modern_cap", "Baseball Cap", _H, "modern", 61, "common", False),
    ("modern_helmet", "Tactical Helmet", _H, "modern", 68, "epic", False),

    ("digital_smart_suit", "Smart Suit", _C, "digital", 75, "rare", True),
    ("digital_cyber_armor", "Cyber Armor", _C, "digital", 85, "epic", False),
    ("digital_plasma_pistol", "Plasma Pistol", _W, "digital", 75, "epic", False),
    ("digital_laser_rifle", "Laser Rifle", _W, "digital", 90, "legendary", False),
    ("digital_neural_interface", "Neural Interface", _A, "digital", 80, "epic", False),
    ("digital_vr_headset", "VR Headset", _H, "digital", 77, "rare", False),
    ("digital_ar_visor", "AR Visor", _H, "digital", 88, "epic", False),

    ("space_suit", "Space Suit", _C, "space", 100, "epic", True),
    ("space_exo_armor", "Exo Armor", _C, "space", 120, "legendary", False),
    ("space_ion_blaster", "Ion Blaster", _W, "space", 100, "epic", False),
    ("space_antimatter_cannon", "Antimatter Cannon", _W, "space", 150, "legendary", False),
    ("space_jetpack", "Jetpack", _A, "space", 105, "epic", False),
    ("space_quantum_field", "Quantum Field Generator", _A, "space", 130, "legendary", False),
    ("space_helmet", "Space Helmet", _H, "space", 100, "rare", False),
    ("space_commander_helm", "Commander Helm", _H, "space", 140, "legendary", False),
]

ITEMS: Dict[str, CharacterItem] = {
    key: CharacterItem(
        key=key, name=name, slot=slot, age_key=age_key,
        unlock_level=level, rarity=rarity, is_default=is_default,
    )
    for key, name, slot, age_key, level, rarity, is_default in _ITEM_ROWS
}


def age_for_level(level: int) -> CharacterAge:
    """Age the character is in at a given level"""
    for age in reversed(AGES):
        if level >= age.min_level:
            return age
    return AGES[0]


def next_age(level: int) -> Optional[CharacterAge]:
    """Next age to reach, or None in the final age"""
    for age in AGES:
        if age.min_level > level:
            return age
    return None


def age_reached(old_level: int, new_level: int) -> Optional[CharacterAge]:
    """The age entered by moving from old_level to new_level, if it changed"""
    old_age = age_for_level(old_level)
    new_age = age_for_level(new_level)
    if new_age.key == old_age.key:
        return None

    logger.info(f"Character advanced from {old_age.name} to {new_age.name} at level {new_level}")
    return new_age


def items_unlocked_at(level: int, slot: Optional[ItemSlot] = None) -> List[CharacterItem]:
    """Every item available at a level, optionally for one slot"""
    return [
        item for item in ITEMS.values()
        if item.unlock_level <= level and (slot is None or item.slot == slot)
    ]


def items_unlocked_between(old_level: int, new_level: int) -> List[CharacterItem]:
    """Items whose unlock level lies in (old_level, new_level]"""
    return [item for item in ITEMS.values() if old_level < item.unlock_level <= new_level]


def default_loadout(level: int) -> Dict[ItemSlot, CharacterItem]:
    """Default item per slot for the character's current age"""
    age = age_for_level(level)
    loadout: Dict[ItemSlot, CharacterItem] = {}
    for item in ITEMS.values():
        if item.age_key == age.key and item.is_default:
            loadout[item.slot] = item
    return loadout


def can_equip(level: int, item_key: str) -> bool:
    """
    Whether an item is unlocked at a level

    Raises:
        ValidationError: unknown item key
    """
    item = ITEMS.get(item_key)
    if item is None:
        raise ValidationError(f"Unknown item '{item_key}'", field="item_key", value=item_key)
    return level >= item.unlock_level
