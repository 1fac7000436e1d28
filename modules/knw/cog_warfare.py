"""
WarfareCog: warfare unit sheets.

Commands (prefix from COMMAND_PREFIX, default k.):
    - k.warfare new <name>
    - k.warfare list
    - k.warfare sheet <name>
    - k.warfare set <name> <stat> <value>
    - k.warfare commander <unit> <actor name | Actor.<id> | Compendium.<pack>.Actor.<id>>
    - k.warfare item <unit> <item name>
    - k.warfare delete <name>

The sheet itself is an embed with a WarfareSheetView; everything after
`sheet` happens through its buttons.
"""

from __future__ import annotations

from discord.ext import commands

from cogs_knw.host import SheetHost, is_editable, report_command_error
from cogs_knw.models import WarfareUnit
from cogs_knw.repo import parse_uuid
from cogs_knw.views import WarfareSheetView

SETTABLE = ("atk", "def", "pow", "tou", "mor", "com", "type", "experience", "size", "casualties")
INT_FIELDS = ("atk", "def", "pow", "tou", "mor", "com", "size", "casualties")


class WarfareCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.host = SheetHost(bot.db)

    async def cog_load(self):
        await self.host.repo.ensure_indexes()

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        await report_command_error(ctx, error)

    async def _unit(self, ctx: commands.Context, name: str):
        actor = await self.host.repo.find_actor_by_name(ctx.guild.id, name, "warfare")
        if actor is None:
            await ctx.send(f"No warfare unit named **{name}**.")
        return actor

    async def _editable(self, ctx: commands.Context, actor) -> bool:
        cfg = await self.host.cfg_repo.get(ctx.guild.id)
        if not is_editable(ctx.author, actor, cfg):
            await ctx.send("You don’t have permission to do that.")
            return False
        return True

    @commands.group(name="warfare", invoke_without_command=True)
    @commands.guild_only()
    async def warfare_group(self, ctx: commands.Context):
        p = ctx.clean_prefix
        await ctx.send(
            "Commands:\n"
            f"- `{p}warfare new <name>`\n"
            f"- `{p}warfare list`\n"
            f"- `{p}warfare sheet <name>`\n"
            f"- `{p}warfare set <name> <stat> <value>`\n"
            f"- `{p}warfare commander <unit> <actor>`\n"
            f"- `{p}warfare item <unit> <item name>`\n"
            f"- `{p}warfare delete <name>`"
        )

    @warfare_group.command(name="new")
    async def new_unit(self, ctx: commands.Context, *, name: str):
        if await self.host.repo.find_actor_by_name(ctx.guild.id, name):
            await ctx.send(f"An actor named **{name}** already exists.")
            return
        actor = await self.host.repo.create_actor(
            guild_id=ctx.guild.id,
            owner_user_id=ctx.author.id,
            name=name,
            actor_type="warfare",
            system=WarfareUnit().to_document(),
        )
        await ctx.send(f"Created warfare unit **{actor.name}** (`{actor.id}`).")

    @warfare_group.command(name="list")
    async def list_units(self, ctx: commands.Context):
        units = await self.host.repo.list_actors(ctx.guild.id, "warfare")
        if not units:
            await ctx.send("No warfare units yet.")
            return
        await ctx.send("Warfare units:\n" + "\n".join(f"- {u.name} (<@{u.owner_user_id}>)" for u in units))

    @warfare_group.command(name="sheet")
    async def show_sheet(self, ctx: commands.Context, *, name: str):
        actor = await self._unit(ctx, name)
        if not actor:
            return
        sheet = await self.host.open_sheet(ctx, actor)
        view = WarfareSheetView(self.host, sheet)
        view.message = await ctx.send(embed=await self.host.render(sheet), view=view)

    @warfare_group.command(name="set")
    async def set_stat(self, ctx: commands.Context, name: str, stat: str, *, value: str):
        stat = stat.lower()
        if stat not in SETTABLE:
            await ctx.send(f"Stat must be one of: {', '.join(SETTABLE)}")
            return
        actor = await self._unit(ctx, name)
        if not actor or not await self._editable(ctx, actor):
            return

        raw = int(value) if stat in INT_FIELDS else value.strip()
        system = {**actor.system, stat: raw}
        unit = WarfareUnit.model_validate(system, context={"config": self.host.config})
        await self.host.repo.update_actor(actor.id, {f"system.{stat}": unit.to_document()[stat]})
        await ctx.send(f"**{actor.name}**: {stat} = {unit.to_document()[stat]}")

    @warfare_group.command(name="commander")
    async def set_commander(self, ctx: commands.Context, unit_name: str, *, reference: str):
        actor = await self._unit(ctx, unit_name)
        if not actor:
            return

        uuid = reference.strip()
        if parse_uuid(uuid) is None:
            target = await self.host.repo.find_actor_by_name(ctx.guild.id, reference)
            if target is None:
                await ctx.send(f"No actor named **{reference}**.")
                return
            uuid = target.uuid

        sheet = await self.host.open_sheet(ctx, actor)
        if not sheet.editable:
            await ctx.send("You don’t have permission to do that.")
            return
        result = await sheet.on_drop_actor({"type": "Actor", "uuid": uuid})
        if result:
            commander = await self.host.repo.resolve_uuid(uuid, ctx.guild.id)
            await ctx.send(sheet.i18n.format(
                "KNW.Warfare.Commander.Set", commanderName=commander.name, warfareUnit=actor.name
            ))

    @warfare_group.command(name="item")
    async def add_item(self, ctx: commands.Context, unit_name: str, *, item_name: str):
        actor = await self._unit(ctx, unit_name)
        if not actor or not await self._editable(ctx, actor):
            return
        doc = await self.host.repo.create_embedded(actor.id, "items", {"name": item_name, "type": "base"})
        await ctx.send(f"Added **{doc.name}** to **{actor.name}**.")

    @warfare_group.command(name="delete")
    async def delete_unit(self, ctx: commands.Context, *, name: str):
        actor = await self._unit(ctx, name)
        if not actor or not await self._editable(ctx, actor):
            return
        await self.host.repo.delete_actor(actor.id)
        await ctx.send(f"Deleted **{actor.name}**.")


async def setup(bot: commands.Bot):
    await bot.add_cog(WarfareCog(bot))
