"""
Record shapes for Kingdoms & Warfare actors.

Responsibilities:
- OrganizationRecord: the `system` data of an organization actor
  (skills, defenses, size, power pool, powers, features)
- WarfareUnit: the `system` data of a warfare unit actor
- Actor / EmbeddedDocument: the Mongo document shapes the sheets read

Validation is pydantic's; the enumerated choice sets come from a KnwConfig
passed through the validation context:

    OrganizationRecord.model_validate(raw, context={"config": cfg})

Without a context the package DEFAULT_CONFIG is used.
"""

from __future__ import annotations
import random
from typing import Annotated, Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationInfo,
    field_validator,
    model_validator,
)

from cogs_knw.config import DEFAULT_CONFIG, KnwConfig
from cogs_knw.rolls import RollResult, d20_test

POOL_MIN = 0
POOL_MAX = 12
POOL_DEFAULT = 4
UNSET = -1

PoolValue = Annotated[int, Field(ge=POOL_MIN, le=POOL_MAX)]


def _context_config(info: ValidationInfo) -> KnwConfig:
    return (info.context or {}).get("config", DEFAULT_CONFIG)


def get_property(data: Any, path: str, default: Any = None) -> Any:
    """Dotted-path lookup into nested dicts / models (`system.attributes.prof`)."""
    current = data
    for part in path.split("."):
        if isinstance(current, BaseModel):
            current = getattr(current, part, None)
        elif isinstance(current, dict):
            current = current.get(part)
        else:
            return default
        if current is None:
            return default
    return current


# -----------------------------
# Organization
# -----------------------------

class OrgInfo(BaseModel):
    type: str = Field("", json_schema_extra={"textSearch": True})
    specialization: str = Field("", json_schema_extra={"textSearch": True})


class ScoredStat(BaseModel):
    score: int = 10
    level: int = 0


class MappedEntry(BaseModel):
    """A power or feature entry; `sort` orders entries for display."""
    label: str = Field("", json_schema_extra={"textSearch": True})
    description: str = ""
    sort: int = 0


class OrganizationRecord(BaseModel):
    """
    Organization actor data.

    dip / esp / lor / opr use -1 as the "unset" sentinel.
    com / rlv / rsc levels must be one of the configured level values.
    size selects the power die; powerDie is derived and never stored.
    """
    model_config = ConfigDict(populate_by_name=True)

    org: OrgInfo = Field(default_factory=OrgInfo)
    dip: int = UNSET
    esp: int = UNSET
    lor: int = UNSET
    opr: int = UNSET
    com: ScoredStat = Field(default_factory=ScoredStat)
    rlv: ScoredStat = Field(default_factory=ScoredStat)
    rsc: ScoredStat = Field(default_factory=ScoredStat)
    size: int = 1
    power_pool: Dict[str, PoolValue] = Field(default_factory=dict, alias="powerPool")
    powers: Dict[str, MappedEntry] = Field(default_factory=dict)
    features: Dict[str, MappedEntry] = Field(default_factory=dict)

    _config: KnwConfig = PrivateAttr(default=DEFAULT_CONFIG)

    @field_validator("com", "rlv", "rsc")
    @classmethod
    def _level_in_choices(cls, value: ScoredStat, info: ValidationInfo) -> ScoredStat:
        allowed = _context_config(info).level_values(info.field_name)
        if value.level not in allowed:
            raise ValueError(f"{info.field_name}.level must be one of {allowed}")
        return value

    @field_validator("size")
    @classmethod
    def _size_in_choices(cls, value: int, info: ValidationInfo) -> int:
        sizes = _context_config(info).sizes
        if value not in sizes:
            raise ValueError(f"size must be one of {sorted(sizes)}")
        return value

    @field_validator("power_pool", mode="before")
    @classmethod
    def _pool_defaults(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: POOL_DEFAULT if v is None else v for k, v in value.items()}
        return value

    @model_validator(mode="after")
    def _bind_config(self, info: ValidationInfo) -> "OrganizationRecord":
        self._config = _context_config(info)
        return self

    @property
    def power_die(self) -> int:
        return self._config.sizes[self.size].power_die

    @staticmethod
    def pool_entry_default() -> int:
        return POOL_DEFAULT

    def sorted_entries(self, kind: str) -> List[tuple[str, MappedEntry]]:
        entries: Dict[str, MappedEntry] = getattr(self, kind)
        return sorted(entries.items(), key=lambda kv: (kv[1].sort, kv[0]))

    def search_text(self) -> str:
        parts = [self.org.type, self.org.specialization]
        parts += [e.label for e in self.powers.values()]
        parts += [e.label for e in self.features.values()]
        return " ".join(p for p in parts if p)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# -----------------------------
# Warfare unit
# -----------------------------

ROLLABLE_STATS = ("atk", "pow", "mor", "com")


class WarfareUnit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    atk: int = 0
    def_: int = Field(10, alias="def")
    pow: int = 0
    tou: int = 10
    mor: int = 0
    com: int = 0
    trait_list: str = Field("", alias="traitList")
    type: str = "infantry"
    experience: str = "regular"
    size: int = Field(6, ge=1, le=6)
    casualties: int = Field(0, ge=0)
    commander: str = ""

    @field_validator("type")
    @classmethod
    def _type_in_choices(cls, value: str, info: ValidationInfo) -> str:
        types = _context_config(info).unit_types
        if value not in types:
            raise ValueError(f"type must be one of {sorted(types)}")
        return value

    @field_validator("experience")
    @classmethod
    def _experience_in_choices(cls, value: str, info: ValidationInfo) -> str:
        levels = _context_config(info).experience
        if value not in levels:
            raise ValueError(f"experience must be one of {sorted(levels)}")
        return value

    def stat(self, key: str) -> int:
        return self.def_ if key == "def" else getattr(self, key)

    def roll_stat(self, stat: str, rng: random.Random | None = None) -> RollResult:
        if stat not in ROLLABLE_STATS:
            raise ValueError(f"{stat!r} is not a rollable stat")
        return d20_test(stat, self.stat(stat), rng)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# -----------------------------
# Documents
# -----------------------------

class EmbeddedDocument(BaseModel):
    """An item or active effect stored inside an actor document."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    name: str
    img: str = ""
    type: str = "base"
    disabled: bool = False
    description: str = ""


class Actor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    name: str
    type: str
    img: str = ""
    guild_id: str = ""
    owner_user_id: str = ""
    pack: Optional[str] = None
    system: Dict[str, Any] = Field(default_factory=dict)
    items: List[EmbeddedDocument] = Field(default_factory=list)
    effects: List[EmbeddedDocument] = Field(default_factory=list)

    @property
    def uuid(self) -> str:
        if self.pack:
            return f"Compendium.{self.pack}.Actor.{self.id}"
        return f"Actor.{self.id}"

    def embedded(self, collection_name: str) -> Dict[str, EmbeddedDocument]:
        docs: List[EmbeddedDocument] = getattr(self, collection_name)
        return {d.id: d for d in docs}

    def get_property(self, path: str, default: Any = None) -> Any:
        return get_property(self, path, default)

    def organization(self, config: KnwConfig = DEFAULT_CONFIG) -> OrganizationRecord:
        return OrganizationRecord.model_validate(self.system, context={"config": config})

    def warfare(self, config: KnwConfig = DEFAULT_CONFIG) -> WarfareUnit:
        return WarfareUnit.model_validate(self.system, context={"config": config})
