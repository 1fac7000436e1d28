"""
Warfare unit sheet controller.

Reads a warfare actor, builds the display context the embed renders, and
maps user gestures to document updates:
- roll a core stat
- edit the `;`-separated trait list
- drop an actor on the sheet to make it the unit's commander
- view / clear the commander from its menu
- edit / delete / toggle / create embedded items and effects

This module has no Discord imports; see cogs_knw.views for the adapters.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from cogs_knw.config import LEVY_ICON
from cogs_knw.models import Actor, WarfareUnit
from cogs_knw.rolls import signed
from cogs_knw.sheet import ActorSheet

log = logging.getLogger(__name__)

CORE_STATS = ("atk", "def", "pow", "tou", "mor", "com")
SIGNED_STATS = ("atk", "pow", "mor", "com")
TRAIT_PLACEHOLDER = "Adaptable; Stalwart"


def parse_traits(trait_list: str) -> Optional[List[str]]:
    traits = [t.strip() for t in (trait_list or "").split(";")]
    return None if len(traits) == 1 and not traits[0] else traits


@dataclass
class MenuEntry:
    name: str
    icon: str
    condition: bool
    callback: Callable[[str], Awaitable[Any]]


class WarfareSheet(ActorSheet):
    default_options = {
        "template": "warfare-sheet",
        "classes": ["dnd5e", "sheet", "actor", "warfare"],
        "width": 600,
        "height": 360,
        "tabs": [
            {
                "navSelector": ".tabs",
                "contentSelector": ".tabs-body",
                "initial": "traits",
                "choices": ["traits", "items", "effects"],
            },
        ],
    }

    @property
    def unit(self) -> WarfareUnit:
        return self.actor.warfare(self.config)

    async def get_data(self) -> Dict[str, Any]:
        unit = self.unit
        rollable = "rollable" if self.editable else ""
        core_stats: Dict[str, Dict[str, Any]] = {}
        for key in CORE_STATS:
            stat = {
                "label": self.i18n.localize(f"KNW.Warfare.Statistics.{key}.abbr"),
                "value": unit.stat(key),
            }
            if key in SIGNED_STATS:
                stat["value"] = signed(unit.stat(key))
                stat["rollable"] = rollable
            core_stats[key] = stat

        commander = await self.repo.get_actor(unit.commander, self.guild_id) if unit.commander else None

        return {
            "actor": self.actor,
            "system": unit,
            "coreStats": core_stats,
            "choices": self.config.as_choices(),
            "traits": self.traits,
            "typeImage": self.type_image,
            "commander": commander,
            "items": list(self.actor.items),
            "effects": list(self.actor.effects),
            "editable": self.editable,
        }

    @property
    def traits(self) -> Optional[List[str]]:
        """The traits to display, or None when the unit has none."""
        return parse_traits(self.unit.trait_list)

    @property
    def type_image(self) -> str:
        unit = self.unit
        if unit.type == "infantry" and unit.experience == "levy":
            return LEVY_ICON
        return self.config.unit_types[unit.type].img

    # -----------------------------
    # Commander
    # -----------------------------

    async def on_drop_actor(self, data: Dict[str, Any]) -> Actor | bool:
        """
        Make the dropped actor this unit's commander.

        Returns False when the drop is refused, otherwise the updated unit.
        """
        if not self.editable or data.get("type") != "Actor":
            return False

        drop_actor = await self.repo.resolve_uuid(data.get("uuid", ""), self.guild_id)
        if drop_actor is None:
            await self.services.notifier.warn(self.i18n.localize("KNW.Warfare.Commander.Warning.World"))
            return False

        if drop_actor.pack:
            await self.services.notifier.warn(self.i18n.localize("KNW.Warfare.Commander.Warning.Pack"))
            return False
        elif drop_actor.guild_id != self.actor.guild_id:
            await self.services.notifier.warn(self.i18n.localize("KNW.Warfare.Commander.Warning.World"))
            return False
        elif not drop_actor.get_property("system.attributes.prof"):
            await self.services.notifier.warn(self.i18n.localize("KNW.Warfare.Commander.Warning.NoProf"))
            return False
        return await self._update({"system.commander": drop_actor.id})

    @property
    def commander_menu(self) -> List[MenuEntry]:
        return [
            MenuEntry(
                name=self.i18n.localize("KNW.Warfare.Commander.View"),
                icon="👁️",
                condition=True,
                callback=self.view_commander,
            ),
            MenuEntry(
                name=self.i18n.localize("KNW.Warfare.Commander.Clear"),
                icon="🗑️",
                condition=self.editable,
                callback=self.clear_commander,
            ),
        ]

    async def view_commander(self, commander_id: str) -> None:
        commander = await self.repo.get_actor(commander_id, self.guild_id)
        if commander is None:
            log.warning("Commander %s of %s no longer exists", commander_id, self.actor.id)
            await self.services.notifier.warn(self.i18n.localize("KNW.Warfare.Commander.Missing"))
            return
        await self.services.renderer.render_actor(commander)

    async def clear_commander(self, commander_id: str) -> Optional[Actor]:
        if not self.editable:
            return None
        commander = await self.repo.get_actor(commander_id, self.guild_id)
        await self.services.notifier.info(
            self.i18n.format(
                "KNW.Warfare.Commander.Warning.Remove",
                commanderName=commander.name if commander else commander_id,
                warfareUnit=self.actor.name,
            )
        )
        return await self._update({"system.commander": ""})

    # -----------------------------
    # Traits / rolls
    # -----------------------------

    async def configure_traits(self) -> Optional[Actor]:
        """
        Prompt for a new trait list and store it exactly as typed.

        The text is not normalized here; display splitting happens in `traits`.
        """
        value = await self.services.dialogs.prompt_text(
            title=self.i18n.localize("KNW.Warfare.Traits.DialogTitle"),
            instructions=self.i18n.localize("KNW.Warfare.Traits.Instructions"),
            value=self.unit.trait_list,
            placeholder=TRAIT_PLACEHOLDER,
            input_id=f"{self.id}-traits",
        )
        if value is None:
            return None
        return await self._update({"system.traitList": value})

    async def roll_stat(self, stat: str) -> None:
        result = self.unit.roll_stat(stat)
        await self.services.rolls.publish(self.actor, result)
