"""
Discord implementations of the sheet services.

Responsibilities:
- InteractionSession: answers whichever interaction (or command context) a
  gesture is currently handling, switching to follow-ups once the first
  response is used and to the modal's interaction after a modal submit
- DiscordNotifier: info / warning messages (ephemeral for interactions)
- DiscordDialogs: text prompt modal, delete confirmation, creation modal
- DiscordRenderer: shows another actor's sheet or an embedded document
- ChannelRollPublisher: posts roll results to the roll channel

Important:
- This file contains *no Mongo logic*. Sheets call these through the
  protocols in cogs_knw.sheet.
"""

from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import discord
from discord.ext import commands

from cogs_knw.embeds import embedded_embed, roll_embed
from cogs_knw.i18n import Localizer
from cogs_knw.models import Actor, EmbeddedDocument
from cogs_knw.rolls import RollResult

log = logging.getLogger(__name__)

DIALOG_TIMEOUT = 300
# Discord caps text inputs at 4000 characters
TEXT_INPUT_MAX = 4000


class InteractionSession:
    def __init__(self, source: discord.Interaction | commands.Context):
        if isinstance(source, discord.Interaction):
            self.interaction: Optional[discord.Interaction] = source
            self.ctx: Optional[commands.Context] = None
        else:
            self.interaction = None
            self.ctx = source

    @property
    def user(self) -> discord.abc.User:
        return self.interaction.user if self.interaction else self.ctx.author

    @property
    def channel(self):
        return self.interaction.channel if self.interaction else self.ctx.channel

    async def send(self, content: str | None = None, *, embed: discord.Embed | None = None,
                   view: discord.ui.View | None = None, ephemeral: bool = True):
        kwargs: Dict[str, Any] = {}
        if content is not None:
            kwargs["content"] = content
        if embed is not None:
            kwargs["embed"] = embed
        if view is not None:
            kwargs["view"] = view

        if self.interaction is None:
            return await self.ctx.send(**kwargs)

        itx = self.interaction
        if itx.response.is_done():
            return await itx.followup.send(ephemeral=ephemeral, wait=True, **kwargs)
        await itx.response.send_message(ephemeral=ephemeral, **kwargs)
        return await itx.original_response()

    async def send_modal(self, modal: discord.ui.Modal) -> None:
        if self.interaction is None or self.interaction.response.is_done():
            raise RuntimeError("Dialogs can only be opened from a button or menu click.")
        await self.interaction.response.send_modal(modal)


# -----------------------------
# Notifications
# -----------------------------

class DiscordNotifier:
    def __init__(self, session: InteractionSession):
        self.session = session

    async def info(self, message: str) -> None:
        await self.session.send(f"ℹ️ {message}")

    async def warn(self, message: str) -> None:
        await self.session.send(f"⚠️ {message}")


# -----------------------------
# Dialogs
# -----------------------------

class TextPromptModal(discord.ui.Modal):
    """Single paragraph input; the instructions go in the placeholder since labels stop at 45 characters."""

    def __init__(self, *, title: str, instructions: str, value: str, placeholder: str, input_id: str):
        super().__init__(title=title[:45], timeout=DIALOG_TIMEOUT)
        self.value: Optional[str] = None
        self.interaction: Optional[discord.Interaction] = None
        hint = f"{instructions} (e.g. {placeholder})" if placeholder else instructions
        self.text = discord.ui.TextInput(
            label=title[:45],
            style=discord.TextStyle.paragraph,
            default=(value or "")[:TEXT_INPUT_MAX] or None,
            placeholder=hint[:100],
            required=False,
            max_length=TEXT_INPUT_MAX,
            custom_id=input_id[:100],
        )
        self.add_item(self.text)

    async def on_submit(self, interaction: discord.Interaction):
        self.value = self.text.value
        self.interaction = interaction
        await interaction.response.defer()
        self.stop()


class CreateDocumentModal(discord.ui.Modal):
    def __init__(self, *, title: str, with_type: bool):
        super().__init__(title=title[:45], timeout=DIALOG_TIMEOUT)
        self.data: Optional[Dict[str, Any]] = None
        self.interaction: Optional[discord.Interaction] = None

        self.name = discord.ui.TextInput(label="Name", max_length=100)
        self.add_item(self.name)
        self.doc_type: Optional[discord.ui.TextInput] = None
        if with_type:
            self.doc_type = discord.ui.TextInput(label="Type", required=False, default="base", max_length=50)
            self.add_item(self.doc_type)
        self.description = discord.ui.TextInput(
            label="Description", style=discord.TextStyle.paragraph, required=False, max_length=2000
        )
        self.add_item(self.description)

    async def on_submit(self, interaction: discord.Interaction):
        self.data = {
            "name": self.name.value.strip(),
            "description": self.description.value.strip(),
        }
        if self.doc_type is not None:
            self.data["type"] = self.doc_type.value.strip() or "base"
        self.interaction = interaction
        await interaction.response.defer()
        self.stop()


class ConfirmView(discord.ui.View):
    def __init__(self, *, confirm_label: str, cancel_label: str):
        super().__init__(timeout=DIALOG_TIMEOUT)
        self.value: Optional[bool] = None
        self.interaction: Optional[discord.Interaction] = None
        self.confirm.label = confirm_label
        self.cancel.label = cancel_label

    async def _finish(self, interaction: discord.Interaction, value: bool):
        self.value = value
        self.interaction = interaction
        for item in self.children:
            item.disabled = True
        await interaction.response.edit_message(view=self)
        self.stop()

    @discord.ui.button(label="Delete", style=discord.ButtonStyle.danger)
    async def confirm(self, interaction: discord.Interaction, _):
        await self._finish(interaction, True)

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.secondary)
    async def cancel(self, interaction: discord.Interaction, _):
        await self._finish(interaction, False)


class DiscordDialogs:
    def __init__(self, session: InteractionSession, i18n: Localizer):
        self.session = session
        self.i18n = i18n

    async def prompt_text(self, *, title: str, instructions: str, value: str,
                          placeholder: str, input_id: str) -> Optional[str]:
        modal = TextPromptModal(
            title=title, instructions=instructions, value=value, placeholder=placeholder, input_id=input_id
        )
        await self.session.send_modal(modal)
        await modal.wait()
        if modal.interaction is None:
            return None
        self.session.interaction = modal.interaction
        return modal.value

    async def confirm_delete(self, doc: EmbeddedDocument) -> bool:
        view = ConfirmView(
            confirm_label=self.i18n.localize("DELETE"),
            cancel_label=self.i18n.localize("CANCEL"),
        )
        await self.session.send(self.i18n.format("KNW.Embedded.DeleteConfirm", name=doc.name), view=view)
        await view.wait()
        if view.interaction is not None:
            self.session.interaction = view.interaction
        return view.value is True

    async def create_document(self, class_name: str, data: Dict[str, Any],
                              parent: Actor) -> Optional[Dict[str, Any]]:
        modal = CreateDocumentModal(
            title=self.i18n.format("KNW.Embedded.Create", type=class_name),
            with_type=class_name == "Item",
        )
        await self.session.send_modal(modal)
        await modal.wait()
        if modal.interaction is None or not modal.data:
            return None
        self.session.interaction = modal.interaction
        return {**data, **modal.data}


# -----------------------------
# Rendering / rolls
# -----------------------------

class DiscordRenderer:
    def __init__(self, session: InteractionSession,
                 actor_embed: Callable[[Actor], Awaitable[discord.Embed]],
                 asset_base_url: str = ""):
        self.session = session
        self.actor_embed = actor_embed
        self.asset_base_url = asset_base_url

    async def render_actor(self, actor: Actor) -> None:
        await self.session.send(embed=await self.actor_embed(actor))

    async def render_embedded(self, parent: Actor, collection: str, doc: EmbeddedDocument) -> None:
        await self.session.send(
            embed=embedded_embed(parent, collection, doc, asset_base_url=self.asset_base_url)
        )


class ChannelRollPublisher:
    def __init__(self, session: InteractionSession, i18n: Localizer, channel=None):
        self.session = session
        self.i18n = i18n
        self.channel = channel

    async def publish(self, actor: Actor, result: RollResult) -> None:
        label = self._label(result.label)
        embed = roll_embed(actor, result, label, self.i18n)
        log.info("%s rolled %s: %s = %s", actor.name, result.label, result.rolls, result.total)
        if self.channel is not None:
            await self.channel.send(embed=embed)
        else:
            await self.session.send(embed=embed, ephemeral=False)

    def _label(self, key: str) -> str:
        for candidate in (f"KNW.Warfare.Statistics.{key}.label", f"KNW.Organization.Skills.{key}",
                          f"KNW.Organization.{key}"):
            if self.i18n.has(candidate):
                return self.i18n.localize(candidate)
        return key.upper()
