"""
Organization sheet controller.

Display context plus the edits an organization sheet offers: skill and
power-die rolls, power-pool entries, and adding / editing / removing powers
and features. Writes are validated against OrganizationRecord before they
reach the store.
"""

from __future__ import annotations
import logging
import random
import re
from typing import Any, Dict, List, Optional

from cogs_knw.config import DEFAULT_CONFIG, KnwConfig
from cogs_knw.models import UNSET, Actor, MappedEntry, OrganizationRecord, get_property
from cogs_knw.rolls import d20_test, roll_die, signed
from cogs_knw.sheet import ActorSheet

log = logging.getLogger(__name__)

SKILLS = ("dip", "esp", "lor", "opr")
DEFENSES = ("com", "rlv", "rsc")
ENTRY_KINDS = ("powers", "features")

EDITABLE_FIELDS = (
    "org.type", "org.specialization",
    "dip", "esp", "lor", "opr",
    "com.score", "com.level",
    "rlv.score", "rlv.level",
    "rsc.score", "rsc.level",
    "size",
)

SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(label: str) -> str:
    return SLUG_RE.sub("-", label.lower()).strip("-") or "entry"


def _set_path(data: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    for part in parts[:-1]:
        data = data.setdefault(part, {})
    data[parts[-1]] = value


class OrganizationSheet(ActorSheet):
    default_options = {
        "template": "organization-sheet",
        "classes": ["dnd5e", "sheet", "actor", "organization"],
        "width": 720,
        "height": 680,
        "tabs": [
            {
                "navSelector": ".tabs",
                "contentSelector": ".tabs-body",
                "initial": "powers",
                "choices": ["powers", "features"],
            },
        ],
    }

    @property
    def record(self) -> OrganizationRecord:
        return self.actor.organization(self.config)

    async def get_data(self) -> Dict[str, Any]:
        record = self.record
        rollable = "rollable" if self.editable else ""

        skills = {
            key: {
                "label": self.i18n.localize(f"KNW.Organization.Skills.{key}"),
                "value": "—" if getattr(record, key) == UNSET else signed(getattr(record, key)),
                "rollable": rollable,
            }
            for key in SKILLS
        }
        defenses = {
            key: {
                "label": self.i18n.localize(f"KNW.Organization.Defenses.{key}"),
                "score": getattr(record, key).score,
                "level": self.i18n.localize(self.config.level_label(key, getattr(record, key).level)),
            }
            for key in DEFENSES
        }

        return {
            "actor": self.actor,
            "system": record,
            "org": record.org,
            "skills": skills,
            "defenses": defenses,
            "size": self.i18n.localize(self.config.sizes[record.size].label),
            "powerDie": f"d{record.power_die}",
            "powerPool": dict(record.power_pool),
            "powers": self._entries(record, "powers"),
            "features": self._entries(record, "features"),
            "choices": self.config.as_choices(),
            "editable": self.editable,
        }

    @staticmethod
    def _entries(record: OrganizationRecord, kind: str) -> List[Dict[str, Any]]:
        return [
            {"key": key, "label": e.label or key, "description": e.description, "sort": e.sort}
            for key, e in record.sorted_entries(kind)
        ]

    def _validated(self, path: str, value: Any) -> OrganizationRecord:
        """Validate the record as it would look after writing `value` at `path`."""
        system = self.record.to_document()
        _set_path(system, path, value)
        return OrganizationRecord.model_validate(system, context={"config": self.config})

    # -----------------------------
    # Edits
    # -----------------------------

    async def update_field(self, path: str, value: Any) -> Optional[Actor]:
        """Set one scalar field (`dip`, `com.level`, `org.type`, ...)."""
        if path not in EDITABLE_FIELDS:
            raise ValueError(f"{path!r} is not an editable organization field")
        coerced = get_property(self._validated(path, value), path)
        return await self._update({f"system.{path}": coerced})

    async def set_pool(self, name: str, value: Any = None) -> Optional[Actor]:
        """Insert or change a power-pool entry; no value stores the pool default."""
        key = slugify(name)
        if value is None:
            value = OrganizationRecord.pool_entry_default()
        record = self._validated(f"powerPool.{key}", value)
        return await self._update({f"system.powerPool.{key}": record.power_pool[key]})

    async def remove_pool(self, name: str) -> bool:
        key = slugify(name)
        if key not in self.record.power_pool:
            return False
        await self._unset(f"system.powerPool.{key}")
        return True

    # -----------------------------
    # Powers / features
    # -----------------------------

    def _entries_of(self, kind: str) -> Dict[str, MappedEntry]:
        if kind not in ENTRY_KINDS:
            raise ValueError(f"{kind!r} must be one of {ENTRY_KINDS}")
        return getattr(self.record, kind)

    async def add_entry(self, kind: str, label: str, description: str = "") -> str:
        entries = self._entries_of(kind)
        if not label.strip():
            raise ValueError("An entry needs a label.")

        base = slugify(label)
        key, n = base, 2
        while key in entries:
            key = f"{base}-{n}"
            n += 1
        sort = max((e.sort for e in entries.values()), default=0) + 1

        entry = MappedEntry(label=label.strip(), description=description.strip(), sort=sort)
        await self._update({f"system.{kind}.{key}": entry.model_dump()})
        return key

    async def update_entry(self, kind: str, key: str, *, label: str | None = None,
                           description: str | None = None, sort: int | None = None) -> Optional[Actor]:
        """Change an entry's label, description or sort order; omitted values are kept."""
        entries = self._entries_of(kind)
        if key not in entries:
            raise ValueError(f"No {kind[:-1]} with key {key!r}")
        if label is not None and not label.strip():
            raise ValueError("An entry needs a label.")

        changes = {
            name: value.strip() if isinstance(value, str) else value
            for name, value in (("label", label), ("description", description), ("sort", sort))
            if value is not None
        }
        if not changes:
            return None
        entry = MappedEntry.model_validate({**entries[key].model_dump(), **changes})
        return await self._update({
            f"system.{kind}.{key}.{name}": getattr(entry, name) for name in changes
        })

    async def remove_entry(self, kind: str, key: str) -> bool:
        if key not in self._entries_of(kind):
            return False
        await self._unset(f"system.{kind}.{key}")
        return True

    async def _unset(self, path: str) -> None:
        updated = await self.repo.unset_actor_field(self.actor.id, path)
        if updated:
            self.actor = updated

    # -----------------------------
    # Rolls
    # -----------------------------

    async def roll_skill(self, skill: str) -> None:
        if skill not in SKILLS:
            raise ValueError(f"{skill!r} is not an organization skill")
        value = getattr(self.record, skill)
        # unset skills roll flat
        result = d20_test(skill, 0 if value == UNSET else value)
        await self.services.rolls.publish(self.actor, result)

    async def roll_power_die(self, rng: random.Random | None = None) -> None:
        result = roll_die(self.record.power_die, rng=rng, label="PowerDie")
        await self.services.rolls.publish(self.actor, result)


def search_organizations(actors: List[Actor], query: str,
                         config: KnwConfig = DEFAULT_CONFIG) -> List[Actor]:
    """Organizations whose name or searchable text (type, specialization, entry labels) contains `query`."""
    needle = query.strip().lower()
    if not needle:
        return []
    return [
        actor for actor in actors
        if needle in actor.name.lower() or needle in actor.organization(config).search_text().lower()
    ]
