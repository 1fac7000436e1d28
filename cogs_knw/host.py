"""
SheetHost: wires sheets to Discord and Mongo.

Responsibilities:
- Own the repositories (actors, guild config) built from bot.db
- Decide whether the user behind an interaction may edit an actor
- Build a sheet (warfare or organization) with its services bound to the
  interaction that triggered it
- Render any actor as an embed
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import discord
from discord.ext import commands
from pydantic import ValidationError

from cogs_knw.adapters import (
    ChannelRollPublisher,
    DiscordDialogs,
    DiscordNotifier,
    DiscordRenderer,
    InteractionSession,
)
from cogs_knw.config import DEFAULT_CONFIG, KnwConfig
from cogs_knw.config_repo import GuildConfigRepo
from cogs_knw.embeds import asset_url, organization_embed, warfare_embed
from cogs_knw.i18n import Localizer
from cogs_knw.models import Actor
from cogs_knw.organization import OrganizationSheet
from cogs_knw.repo import ActorRepo
from cogs_knw.sheet import ActorSheet, SheetServices
from cogs_knw.warfare import WarfareSheet

log = logging.getLogger(__name__)

SHEET_CLASSES = {
    "warfare": WarfareSheet,
    "organization": OrganizationSheet,
}


def is_editable(user: discord.abc.User, actor: Actor, cfg: Dict[str, Any]) -> bool:
    """Owners, Manage Server and configured GM roles may edit a sheet."""
    if str(user.id) == actor.owner_user_id:
        return True
    perms = getattr(user, "guild_permissions", None)
    if perms is not None and perms.manage_guild:
        return True
    gm_roles = {str(r) for r in cfg.get("gm_role_ids", [])}
    user_roles = {str(r.id) for r in getattr(user, "roles", [])}
    return not gm_roles.isdisjoint(user_roles)


class SheetHost:
    def __init__(self, db, config: KnwConfig = DEFAULT_CONFIG):
        self.repo = ActorRepo(db)
        self.cfg_repo = GuildConfigRepo(db)
        self.config = config
        self._localizers: Dict[str, Localizer] = {}

    def localizer(self, locale: str) -> Localizer:
        if locale not in self._localizers:
            self._localizers[locale] = Localizer.load(locale)
        return self._localizers[locale]

    async def services(self, session: InteractionSession, guild: discord.Guild | None) -> tuple[SheetServices, Dict[str, Any]]:
        cfg = await self.cfg_repo.get(guild.id) if guild else {}
        i18n = self.localizer(cfg.get("locale", "en"))

        roll_channel = None
        if guild and cfg.get("roll_channel_id"):
            maybe = guild.get_channel(int(cfg["roll_channel_id"]))
            if isinstance(maybe, discord.TextChannel):
                roll_channel = maybe

        services = SheetServices(
            repo=self.repo,
            config=self.config,
            i18n=i18n,
            notifier=DiscordNotifier(session),
            dialogs=DiscordDialogs(session, i18n),
            renderer=DiscordRenderer(session, self.actor_embed_for(i18n, cfg), cfg.get("asset_base_url", "")),
            rolls=ChannelRollPublisher(session, i18n, roll_channel),
        )
        return services, cfg

    async def open_sheet(self, source: discord.Interaction | commands.Context,
                         actor: Actor | str) -> Optional[ActorSheet]:
        if isinstance(actor, str):
            actor = await self.repo.get_actor(actor, source.guild.id if source.guild else None)
            if actor is None:
                return None

        sheet_cls = SHEET_CLASSES.get(actor.type)
        if sheet_cls is None:
            raise ValueError(f"{actor.name} is a {actor.type} actor and has no sheet here.")

        session = InteractionSession(source)
        services, cfg = await self.services(session, source.guild)
        return sheet_cls(
            actor,
            services,
            editable=is_editable(session.user, actor, cfg),
            sheet_id=f"{actor.type}-{actor.id}",
        )

    async def render(self, sheet: ActorSheet, tab: str | None = None) -> discord.Embed:
        cfg = await self.cfg_repo.get(int(sheet.actor.guild_id)) if sheet.actor.guild_id else {}
        context = await sheet.get_data()
        initial = sheet.default_options["tabs"][0]["initial"]
        if isinstance(sheet, WarfareSheet):
            return warfare_embed(context, sheet.i18n, tab=tab or initial,
                                 asset_base_url=cfg.get("asset_base_url", ""))
        return organization_embed(context, sheet.i18n, tab=tab or initial)

    def actor_embed_for(self, i18n: Localizer, cfg: Dict[str, Any]):
        """Embed builder for actors opened from another sheet (e.g. a commander)."""
        async def _embed(actor: Actor) -> discord.Embed:
            if actor.type == "warfare":
                sheet = WarfareSheet(actor, self._read_only_services(i18n), editable=False)
                return warfare_embed(await sheet.get_data(), i18n, asset_base_url=cfg.get("asset_base_url", ""))
            if actor.type == "organization":
                sheet = OrganizationSheet(actor, self._read_only_services(i18n), editable=False)
                return organization_embed(await sheet.get_data(), i18n)

            e = discord.Embed(title=actor.name, description=actor.type.capitalize())
            prof = actor.get_property("system.attributes.prof")
            if prof:
                e.add_field(name="Proficiency", value=f"+{prof}", inline=True)
            thumb = asset_url(cfg.get("asset_base_url", ""), actor.img)
            if thumb:
                e.set_thumbnail(url=thumb)
            e.set_footer(text=f"Actor ID: {actor.id}")
            return e
        return _embed

    def _read_only_services(self, i18n: Localizer) -> SheetServices:
        return SheetServices(
            repo=self.repo, config=self.config, i18n=i18n,
            notifier=None, dialogs=None, renderer=None, rolls=None,
        )


def describe_error(exc: Exception) -> str:
    """Short, user-facing text for validation failures."""
    if isinstance(exc, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err["loc"] else err["msg"]
            for err in exc.errors()
        )
    return str(exc)


async def report_command_error(ctx: commands.Context, error: commands.CommandError) -> None:
    """Shared cog_command_error body for the sheet cogs."""
    if isinstance(error, commands.CommandInvokeError) and isinstance(error.original, ValueError):
        await ctx.send(f"❌ {describe_error(error.original)}")
    elif isinstance(error, (commands.BadArgument, commands.MissingRequiredArgument)):
        await ctx.send(f"❌ {error}")
    elif isinstance(error, commands.CheckFailure):
        await ctx.send("You don’t have permission to do that.")
    else:
        log.error("Command %s failed", ctx.command, exc_info=error)
        await ctx.send("❌ Something went wrong running that command.")
