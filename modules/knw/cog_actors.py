"""
ActorsCog: characters that can command warfare units, and per-guild sheet settings.

Commands (prefix from COMMAND_PREFIX, default k.):
    - k.actor new <name> [proficiency]
    - k.actor prof <name> <proficiency>
    - k.actor list
    - k.actor delete <name>

    Manage Server only:
    - k.knwconfig show
    - k.knwconfig locale <code>
    - k.knwconfig gmroles @role ...
    - k.knwconfig assets <base url>
    - k.knwconfig rollchannel [#channel]
"""

from __future__ import annotations
from typing import Optional

import discord
from discord.ext import commands

from cogs_knw.host import SheetHost, is_editable, report_command_error
from cogs_knw.i18n import LANG_DIR


class ActorsCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.host = SheetHost(bot.db)

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        await report_command_error(ctx, error)

    # -----------------------------
    # Characters
    # -----------------------------

    @commands.group(name="actor", invoke_without_command=True)
    @commands.guild_only()
    async def actor_group(self, ctx: commands.Context):
        p = ctx.clean_prefix
        await ctx.send(
            "Commands:\n"
            f"- `{p}actor new <name> [proficiency]`\n"
            f"- `{p}actor prof <name> <proficiency>`\n"
            f"- `{p}actor list`\n"
            f"- `{p}actor delete <name>`"
        )

    @actor_group.command(name="new")
    async def new_character(self, ctx: commands.Context, name: str, prof: int = 0):
        if await self.host.repo.find_actor_by_name(ctx.guild.id, name):
            await ctx.send(f"An actor named **{name}** already exists.")
            return
        actor = await self.host.repo.create_actor(
            guild_id=ctx.guild.id,
            owner_user_id=ctx.author.id,
            name=name,
            actor_type="character",
            system={"attributes": {"prof": prof}},
        )
        await ctx.send(f"Created character **{actor.name}** (`{actor.uuid}`).")

    @actor_group.command(name="prof")
    async def set_prof(self, ctx: commands.Context, name: str, prof: int):
        actor = await self.host.repo.find_actor_by_name(ctx.guild.id, name, "character")
        if actor is None:
            await ctx.send(f"No character named **{name}**.")
            return
        cfg = await self.host.cfg_repo.get(ctx.guild.id)
        if not is_editable(ctx.author, actor, cfg):
            await ctx.send("You don’t have permission to do that.")
            return
        await self.host.repo.update_actor(actor.id, {"system.attributes.prof": prof})
        await ctx.send(f"**{actor.name}**: proficiency = {prof}")

    @actor_group.command(name="list")
    async def list_actors(self, ctx: commands.Context):
        actors = await self.host.repo.list_actors(ctx.guild.id)
        if not actors:
            await ctx.send("No actors yet.")
            return
        await ctx.send("Actors:\n" + "\n".join(f"- {a.name} [{a.type}] `{a.uuid}`" for a in actors))

    @actor_group.command(name="delete")
    async def delete_actor(self, ctx: commands.Context, *, name: str):
        actor = await self.host.repo.find_actor_by_name(ctx.guild.id, name)
        if actor is None:
            await ctx.send(f"No actor named **{name}**.")
            return
        cfg = await self.host.cfg_repo.get(ctx.guild.id)
        if not is_editable(ctx.author, actor, cfg):
            await ctx.send("You don’t have permission to do that.")
            return
        await self.host.repo.delete_actor(actor.id)
        await ctx.send(f"Deleted **{actor.name}**.")

    # -----------------------------
    # Guild settings
    # -----------------------------

    @commands.group(name="knwconfig", invoke_without_command=True)
    @commands.guild_only()
    @commands.has_permissions(manage_guild=True)
    async def config_group(self, ctx: commands.Context):
        await self.show_config(ctx)

    @config_group.command(name="show")
    async def show_config(self, ctx: commands.Context):
        cfg = await self.host.cfg_repo.get(ctx.guild.id)
        roles = ", ".join(f"<@&{r}>" for r in cfg.get("gm_role_ids", [])) or "(none)"
        channel = f"<#{cfg['roll_channel_id']}>" if cfg.get("roll_channel_id") else "(sheet channel)"
        await ctx.send(
            "**Sheet settings**\n"
            f"- locale: `{cfg.get('locale', 'en')}`\n"
            f"- GM roles: {roles}\n"
            f"- asset base URL: {cfg.get('asset_base_url') or '(none)'}\n"
            f"- roll channel: {channel}"
        )

    @config_group.command(name="locale")
    async def set_locale(self, ctx: commands.Context, locale: str):
        locale = locale.strip()
        if not (LANG_DIR / f"{locale}.json").exists():
            available = sorted(p.stem for p in LANG_DIR.glob("*.json"))
            await ctx.send(f"No translations for `{locale}`. Available: {', '.join(available)}")
            return
        await self.host.cfg_repo.set_locale(ctx.guild.id, locale)
        await ctx.send(f"Sheet locale set to `{locale}`.")

    @config_group.command(name="gmroles")
    async def set_gm_roles(self, ctx: commands.Context, roles: commands.Greedy[discord.Role]):
        await self.host.cfg_repo.set_gm_roles(ctx.guild.id, [r.id for r in roles])
        if roles:
            await ctx.send("GM roles: " + ", ".join(r.mention for r in roles))
        else:
            await ctx.send("GM roles cleared.")

    @config_group.command(name="assets")
    async def set_assets(self, ctx: commands.Context, url: str = ""):
        if url and not url.startswith(("http://", "https://")):
            await ctx.send("The asset base URL must start with http:// or https://")
            return
        await self.host.cfg_repo.set_asset_base_url(ctx.guild.id, url)
        await ctx.send(f"Asset base URL set to {url or '(none)'}.")

    @config_group.command(name="rollchannel")
    async def set_roll_channel(self, ctx: commands.Context, channel: Optional[discord.TextChannel] = None):
        await self.host.cfg_repo.set_roll_channel(ctx.guild.id, channel.id if channel else None)
        await ctx.send(f"Rolls will be posted in {channel.mention if channel else 'the sheet channel'}.")


async def setup(bot: commands.Bot):
    await bot.add_cog(ActorsCog(bot))
