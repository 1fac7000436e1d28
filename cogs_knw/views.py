"""
Discord UI (buttons + selects) for actor sheets.

Responsibilities:
- WarfareSheetView, attached to a warfare unit's sheet message:
    - roll ATK / POW / MOR / COM
    - edit traits (modal)
    - switch tabs: traits / items / effects
    - commander menu: view / clear
    - pick an item or effect, then edit / delete / toggle it; create effects
- OrganizationSheetView: skill and power-die rolls, powers / features tabs
- the item / effect select pages through long lists (page_window())

Permission model:
- Anyone may look (tabs, view commander, edit = open an embedded sheet).
- Rolling and changing anything requires an editable sheet (_guard()).

Important:
- This file contains *no Mongo logic*. Every click opens a fresh sheet
  through the SheetHost and calls the sheet's handlers.
"""

from __future__ import annotations
import logging
from typing import List, Optional

import discord

from cogs_knw.host import SheetHost
from cogs_knw.models import Actor
from cogs_knw.organization import OrganizationSheet
from cogs_knw.sheet import ActorSheet
from cogs_knw.warfare import WarfareSheet

log = logging.getLogger(__name__)

SELECT_LIMIT = 25
NO_DOCS = "__none__"
PREV_PAGE = "__prev__"
NEXT_PAGE = "__next__"
# two option slots are kept for the page links
DOC_PAGE_SIZE = SELECT_LIMIT - 2


def page_window(count: int, page: int, size: int = DOC_PAGE_SIZE) -> tuple[int, int, int, int]:
    """Clamp `page` and return (page, pages, start, end) for a list of `count` options."""
    pages = max(1, -(-count // size))
    page = min(max(page, 0), pages - 1)
    start = page * size
    return page, pages, start, min(start + size, count)


class _SheetView(discord.ui.View):
    def __init__(self, host: SheetHost, *, actor_id: str, tab: str, timeout: float = 3600):
        super().__init__(timeout=timeout)
        self.host = host
        self.actor_id = actor_id
        self.tab = tab
        self.message: Optional[discord.Message] = None

    async def on_timeout(self):
        try:
            if self.message:
                for item in self.children:
                    item.disabled = True
                await self.message.edit(view=self)
        except discord.NotFound:
            pass  # Message was deleted

    async def _open(self, interaction: discord.Interaction) -> Optional[ActorSheet]:
        sheet = await self.host.open_sheet(interaction, self.actor_id)
        if sheet is None:
            await interaction.response.send_message("This actor no longer exists.", ephemeral=True)
            self.stop()
        return sheet

    async def _guard(self, interaction: discord.Interaction, sheet: ActorSheet) -> bool:
        if not sheet.editable:
            await interaction.response.send_message("You don’t have permission to do that.", ephemeral=True)
            return False
        return True

    async def refresh(self, sheet: ActorSheet) -> None:
        """Redraw the sheet message from the sheet's current actor."""
        if self.message:
            await self.message.edit(embed=await self.host.render(sheet, self.tab), view=self)

    async def _show_tab(self, interaction: discord.Interaction, tab: str) -> None:
        sheet = await self._open(interaction)
        if not sheet:
            return
        self.tab = tab
        await interaction.response.edit_message(embed=await self.host.render(sheet, tab), view=self)


class WarfareSheetView(_SheetView):
    def __init__(self, host: SheetHost, sheet: WarfareSheet, *, tab: str = "traits"):
        super().__init__(host, actor_id=sheet.actor.id, tab=tab)
        self.selected: Optional[tuple[str, str]] = None
        self.doc_page = 0

        self.commander_select.options = [
            discord.SelectOption(label=entry.name[:100], value=str(i), emoji=entry.icon)
            for i, entry in enumerate(sheet.commander_menu)
        ]
        self._populate_docs(sheet.actor)

    def _populate_docs(self, actor: Actor) -> None:
        options: List[discord.SelectOption] = []
        for collection in ("items", "effects"):
            for doc in getattr(actor, collection):
                options.append(discord.SelectOption(
                    label=doc.name[:100],
                    value=f"{collection}:{doc.id}",
                    description=f"{collection[:-1]}{' (disabled)' if doc.disabled else ''}",
                    default=self.selected == (collection, doc.id),
                ))
        if not options:
            self.selected = None
            self.doc_page = 0
            self.doc_select.options = [discord.SelectOption(label="No items or effects", value=NO_DOCS)]
            self.doc_select.placeholder = "Item or effect…"
            self.doc_select.disabled = True
            return

        self.doc_page, pages, start, end = page_window(len(options), self.doc_page)
        page = options[start:end]
        if self.doc_page > 0:
            page.insert(0, discord.SelectOption(label="Previous page", value=PREV_PAGE, emoji="⬅️"))
        if end < len(options):
            page.append(discord.SelectOption(label="Next page", value=NEXT_PAGE, emoji="➡️"))
        self.doc_select.options = page
        self.doc_select.placeholder = (
            f"Item or effect… (page {self.doc_page + 1}/{pages}, {len(options)} total)"
            if pages > 1 else "Item or effect…"
        )
        self.doc_select.disabled = False

    async def refresh(self, sheet: ActorSheet) -> None:
        self._populate_docs(sheet.actor)
        await super().refresh(sheet)

    # ---- rolls ----

    async def _roll(self, interaction: discord.Interaction, stat: str):
        sheet = await self._open(interaction)
        if not sheet or not await self._guard(interaction, sheet):
            return
        await interaction.response.defer()
        await sheet.roll_stat(stat)

    @discord.ui.button(label="ATK", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_atk(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "atk")

    @discord.ui.button(label="POW", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_pow(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "pow")

    @discord.ui.button(label="MOR", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_mor(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "mor")

    @discord.ui.button(label="COM", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_com(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "com")

    # ---- traits + tabs ----

    @discord.ui.button(label="Edit traits", emoji="✏️", style=discord.ButtonStyle.secondary, row=1)
    async def edit_traits(self, interaction: discord.Interaction, _):
        sheet = await self._open(interaction)
        if not sheet or not await self._guard(interaction, sheet):
            return
        if await sheet.configure_traits() is not None:
            await self.refresh(sheet)

    @discord.ui.button(label="Traits", style=discord.ButtonStyle.grey, row=1)
    async def tab_traits(self, interaction: discord.Interaction, _):
        await self._show_tab(interaction, "traits")

    @discord.ui.button(label="Items", style=discord.ButtonStyle.grey, row=1)
    async def tab_items(self, interaction: discord.Interaction, _):
        await self._show_tab(interaction, "items")

    @discord.ui.button(label="Effects", style=discord.ButtonStyle.grey, row=1)
    async def tab_effects(self, interaction: discord.Interaction, _):
        await self._show_tab(interaction, "effects")

    # ---- commander ----

    @discord.ui.select(placeholder="Commander…", row=2,
                       options=[discord.SelectOption(label="View", value="0")])
    async def commander_select(self, interaction: discord.Interaction, select: discord.ui.Select):
        sheet = await self._open(interaction)
        if not sheet:
            return
        commander_id = sheet.unit.commander
        if not commander_id:
            await interaction.response.send_message(
                sheet.i18n.localize("KNW.Warfare.Commander.None"), ephemeral=True
            )
            return

        entry = sheet.commander_menu[int(select.values[0])]
        if not entry.condition:
            await interaction.response.send_message("You don’t have permission to do that.", ephemeral=True)
            return
        await entry.callback(commander_id)
        await self.refresh(sheet)

    # ---- items / effects ----

    @discord.ui.select(placeholder="Item or effect…", row=3,
                       options=[discord.SelectOption(label="No items or effects", value=NO_DOCS)])
    async def doc_select(self, interaction: discord.Interaction, select: discord.ui.Select):
        value = select.values[0]
        if value in (PREV_PAGE, NEXT_PAGE):
            sheet = await self._open(interaction)
            if not sheet:
                return
            self.doc_page += -1 if value == PREV_PAGE else 1
            self._populate_docs(sheet.actor)
            await interaction.response.edit_message(view=self)
            return
        if value == NO_DOCS:
            self.selected = None
        else:
            collection, doc_id = value.split(":", 1)
            self.selected = (collection, doc_id)
        await interaction.response.defer()

    async def _control(self, interaction: discord.Interaction, action: str):
        sheet = await self._open(interaction)
        if not sheet:
            return
        if action != "edit" and not await self._guard(interaction, sheet):
            return
        if not self.selected:
            await interaction.response.send_message("Pick an item or effect first.", ephemeral=True)
            return

        collection, doc_id = self.selected
        if action == "toggle":
            await interaction.response.defer()
        await sheet.handle_embedded_control(collection, action, doc_id)
        if action == "edit":
            return
        if doc_id not in sheet.actor.embedded(collection):
            self.selected = None
        await self.refresh(sheet)

    @discord.ui.button(label="Edit", emoji="📝", style=discord.ButtonStyle.secondary, row=4)
    async def edit_doc(self, interaction: discord.Interaction, _):
        await self._control(interaction, "edit")

    @discord.ui.button(label="Toggle", emoji="⏯️", style=discord.ButtonStyle.secondary, row=4)
    async def toggle_doc(self, interaction: discord.Interaction, _):
        await self._control(interaction, "toggle")

    @discord.ui.button(label="Delete", emoji="🗑️", style=discord.ButtonStyle.danger, row=4)
    async def delete_doc(self, interaction: discord.Interaction, _):
        await self._control(interaction, "delete")

    @discord.ui.button(label="New effect", emoji="✨", style=discord.ButtonStyle.success, row=4)
    async def create_effect(self, interaction: discord.Interaction, _):
        sheet = await self._open(interaction)
        if not sheet or not await self._guard(interaction, sheet):
            return
        if await sheet.handle_embedded_create("ActiveEffect") is not None:
            await self.refresh(sheet)


class OrganizationSheetView(_SheetView):
    def __init__(self, host: SheetHost, sheet: OrganizationSheet, *, tab: str = "powers"):
        super().__init__(host, actor_id=sheet.actor.id, tab=tab)

    async def _roll(self, interaction: discord.Interaction, skill: str):
        sheet = await self._open(interaction)
        if not sheet or not await self._guard(interaction, sheet):
            return
        await interaction.response.defer()
        await sheet.roll_skill(skill)

    @discord.ui.button(label="DIP", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_dip(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "dip")

    @discord.ui.button(label="ESP", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_esp(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "esp")

    @discord.ui.button(label="LOR", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_lor(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "lor")

    @discord.ui.button(label="OPR", emoji="🎲", style=discord.ButtonStyle.primary, row=0)
    async def roll_opr(self, interaction: discord.Interaction, _):
        await self._roll(interaction, "opr")

    @discord.ui.button(label="Power die", emoji="🎲", style=discord.ButtonStyle.success, row=0)
    async def roll_power(self, interaction: discord.Interaction, _):
        sheet = await self._open(interaction)
        if not sheet or not await self._guard(interaction, sheet):
            return
        await interaction.response.defer()
        await sheet.roll_power_die()

    @discord.ui.button(label="Powers", style=discord.ButtonStyle.grey, row=1)
    async def tab_powers(self, interaction: discord.Interaction, _):
        await self._show_tab(interaction, "powers")

    @discord.ui.button(label="Features", style=discord.ButtonStyle.grey, row=1)
    async def tab_features(self, interaction: discord.Interaction, _):
        await self._show_tab(interaction, "features")
