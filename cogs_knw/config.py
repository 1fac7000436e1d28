"""
Game configuration tables for Kingdoms & Warfare actors.

Responsibilities:
- Enumerated choices used by the record shapes:
    - organization sizes (size -> label + power die)
    - communications / resolve / resources levels
    - warfare unit types (type -> label + icon) and experience levels
- The embedded document class registry (class name -> actor collection)

Components never read these tables from a global; they receive a KnwConfig
instance (DEFAULT_CONFIG unless a guild overrides it).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class SizeChoice:
    label: str
    power_die: int


@dataclass(frozen=True)
class LevelChoice:
    value: int
    label: str


@dataclass(frozen=True)
class UnitType:
    label: str
    img: str


LEVY_ICON = "assets/icons/levy.png"
DEFAULT_EFFECT_ICON = "icons/svg/aura.svg"

SIZES: Dict[int, SizeChoice] = {
    1: SizeChoice("KNW.Organization.Size.1", 4),
    2: SizeChoice("KNW.Organization.Size.2", 6),
    3: SizeChoice("KNW.Organization.Size.3", 8),
    4: SizeChoice("KNW.Organization.Size.4", 10),
    5: SizeChoice("KNW.Organization.Size.5", 12),
}

COMMUNICATIONS: List[LevelChoice] = [
    LevelChoice(0, "KNW.Organization.Communications.0"),
    LevelChoice(1, "KNW.Organization.Communications.1"),
    LevelChoice(2, "KNW.Organization.Communications.2"),
    LevelChoice(3, "KNW.Organization.Communications.3"),
]

RESOLVE: List[LevelChoice] = [
    LevelChoice(0, "KNW.Organization.Resolve.0"),
    LevelChoice(1, "KNW.Organization.Resolve.1"),
    LevelChoice(2, "KNW.Organization.Resolve.2"),
    LevelChoice(3, "KNW.Organization.Resolve.3"),
]

RESOURCES: List[LevelChoice] = [
    LevelChoice(0, "KNW.Organization.Resources.0"),
    LevelChoice(1, "KNW.Organization.Resources.1"),
    LevelChoice(2, "KNW.Organization.Resources.2"),
    LevelChoice(3, "KNW.Organization.Resources.3"),
]

UNIT_TYPES: Dict[str, UnitType] = {
    "infantry": UnitType("KNW.Warfare.Type.infantry", "assets/icons/infantry.png"),
    "artillery": UnitType("KNW.Warfare.Type.artillery", "assets/icons/artillery.png"),
    "cavalry": UnitType("KNW.Warfare.Type.cavalry", "assets/icons/cavalry.png"),
    "aerial": UnitType("KNW.Warfare.Type.aerial", "assets/icons/aerial.png"),
}

EXPERIENCE: Dict[str, str] = {
    "levy": "KNW.Warfare.Experience.levy",
    "regular": "KNW.Warfare.Experience.regular",
    "veteran": "KNW.Warfare.Experience.veteran",
    "elite": "KNW.Warfare.Experience.elite",
    "superElite": "KNW.Warfare.Experience.superElite",
}

# class name -> embedded collection on the parent actor
DOCUMENT_CLASSES: Dict[str, str] = {
    "Item": "items",
    "ActiveEffect": "effects",
}


@dataclass(frozen=True)
class KnwConfig:
    sizes: Dict[int, SizeChoice] = field(default_factory=lambda: dict(SIZES))
    communications: List[LevelChoice] = field(default_factory=lambda: list(COMMUNICATIONS))
    resolve: List[LevelChoice] = field(default_factory=lambda: list(RESOLVE))
    resources: List[LevelChoice] = field(default_factory=lambda: list(RESOURCES))
    unit_types: Dict[str, UnitType] = field(default_factory=lambda: dict(UNIT_TYPES))
    experience: Dict[str, str] = field(default_factory=lambda: dict(EXPERIENCE))
    document_classes: Dict[str, str] = field(default_factory=lambda: dict(DOCUMENT_CLASSES))

    def level_values(self, stat: str) -> List[int]:
        """Allowed `level` values for com / rlv / rsc."""
        table = {
            "com": self.communications,
            "rlv": self.resolve,
            "rsc": self.resources,
        }[stat]
        return [level.value for level in table]

    def level_label(self, stat: str, value: int) -> str:
        table = {
            "com": self.communications,
            "rlv": self.resolve,
            "rsc": self.resources,
        }[stat]
        for level in table:
            if level.value == value:
                return level.label
        return str(value)

    def as_choices(self) -> Dict[str, object]:
        """Choice tables in the shape the sheet templates expect."""
        return {
            "SIZE": self.sizes,
            "COMMUNICATIONS": self.communications,
            "RESOLVE": self.resolve,
            "RESOURCES": self.resources,
            "TYPE": self.unit_types,
            "EXPERIENCE": self.experience,
        }


DEFAULT_CONFIG = KnwConfig()
