"""
OrganizationCog: organization sheets.

Commands (prefix from COMMAND_PREFIX, default k.):
    - k.org new <name>
    - k.org list
    - k.org search <text>
    - k.org sheet <name>
    - k.org set <name> <field> <value>
    - k.org power add <org> <label> [| description]
    - k.org power edit <org> <key> <label> [| description]
    - k.org power sort <org> <key> <position>
    - k.org power remove <org> <key>
    - k.org feature add|edit|sort|remove ... (same as power)
    - k.org pool set <org> <name> [value]
    - k.org pool remove <org> <name>
    - k.org roll <org> <skill | power>
    - k.org delete <name>
"""

from __future__ import annotations
from typing import Optional

from discord.ext import commands

from cogs_knw.host import SheetHost, is_editable, report_command_error
from cogs_knw.models import OrganizationRecord
from cogs_knw.organization import EDITABLE_FIELDS, SKILLS, OrganizationSheet, search_organizations
from cogs_knw.views import OrganizationSheetView


def _split_entry(text: str) -> tuple[str, str]:
    label, _, description = text.partition("|")
    return label.strip(), description.strip()


class OrganizationCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.host = SheetHost(bot.db)

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        await report_command_error(ctx, error)

    async def _sheet(self, ctx: commands.Context, name: str, *, edit: bool = True) -> Optional[OrganizationSheet]:
        actor = await self.host.repo.find_actor_by_name(ctx.guild.id, name, "organization")
        if actor is None:
            await ctx.send(f"No organization named **{name}**.")
            return None
        sheet = await self.host.open_sheet(ctx, actor)
        if edit and not sheet.editable:
            await ctx.send("You don’t have permission to do that.")
            return None
        return sheet

    @commands.group(name="org", invoke_without_command=True)
    @commands.guild_only()
    async def org_group(self, ctx: commands.Context):
        p = ctx.clean_prefix
        await ctx.send(
            "Commands:\n"
            f"- `{p}org new <name>`\n"
            f"- `{p}org list`\n"
            f"- `{p}org search <text>`\n"
            f"- `{p}org sheet <name>`\n"
            f"- `{p}org set <name> <field> <value>`\n"
            f"- `{p}org power add|edit|sort|remove <org> ...`\n"
            f"- `{p}org feature add|edit|sort|remove <org> ...`\n"
            f"- `{p}org pool set|remove <org> <name> [value]`\n"
            f"- `{p}org roll <org> <skill | power>`\n"
            f"- `{p}org delete <name>`"
        )

    @org_group.command(name="new")
    async def new_org(self, ctx: commands.Context, *, name: str):
        if await self.host.repo.find_actor_by_name(ctx.guild.id, name):
            await ctx.send(f"An actor named **{name}** already exists.")
            return
        actor = await self.host.repo.create_actor(
            guild_id=ctx.guild.id,
            owner_user_id=ctx.author.id,
            name=name,
            actor_type="organization",
            system=OrganizationRecord().to_document(),
        )
        await ctx.send(f"Created organization **{actor.name}** (`{actor.id}`).")

    @org_group.command(name="list")
    async def list_orgs(self, ctx: commands.Context):
        orgs = await self.host.repo.list_actors(ctx.guild.id, "organization")
        if not orgs:
            await ctx.send("No organizations yet.")
            return
        await ctx.send("Organizations:\n" + "\n".join(f"- {o.name} (<@{o.owner_user_id}>)" for o in orgs))

    @org_group.command(name="search")
    async def search_orgs(self, ctx: commands.Context, *, text: str):
        orgs = await self.host.repo.list_actors(ctx.guild.id, "organization")
        found = search_organizations(orgs, text, self.host.config)
        if not found:
            await ctx.send(f"No organization matches **{text}**.")
            return
        await ctx.send(f"Organizations matching **{text}**:\n" + "\n".join(f"- {o.name}" for o in found))

    @org_group.command(name="sheet")
    async def show_sheet(self, ctx: commands.Context, *, name: str):
        sheet = await self._sheet(ctx, name, edit=False)
        if not sheet:
            return
        view = OrganizationSheetView(self.host, sheet)
        view.message = await ctx.send(embed=await self.host.render(sheet), view=view)

    @org_group.command(name="set")
    async def set_field(self, ctx: commands.Context, name: str, field: str, *, value: str):
        field = field.strip()
        if field not in EDITABLE_FIELDS:
            await ctx.send(f"Field must be one of: {', '.join(EDITABLE_FIELDS)}")
            return
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        await sheet.update_field(field, value.strip())
        await ctx.send(f"**{sheet.actor.name}**: {field} = {sheet.actor.get_property(f'system.{field}')}")

    # ---- powers / features ----

    async def _add(self, ctx: commands.Context, kind: str, name: str, text: str):
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        label, description = _split_entry(text)
        key = await sheet.add_entry(kind, label, description)
        await ctx.send(f"Added **{label}** to {kind} of **{sheet.actor.name}** (key `{key}`).")

    async def _edit(self, ctx: commands.Context, kind: str, name: str, key: str, text: str):
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        label, description = _split_entry(text)
        # no "|" keeps the current description
        await sheet.update_entry(kind, key.strip(), label=label, description=description if "|" in text else None)
        await ctx.send(f"Updated `{key}` in {kind} of **{sheet.actor.name}**.")

    async def _sort(self, ctx: commands.Context, kind: str, name: str, key: str, position: int):
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        await sheet.update_entry(kind, key.strip(), sort=position)
        order = ", ".join(f"`{k}`" for k, _ in sheet.record.sorted_entries(kind))
        await ctx.send(f"**{sheet.actor.name}** {kind}: {order}")

    async def _remove(self, ctx: commands.Context, kind: str, name: str, key: str):
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        if await sheet.remove_entry(kind, key.strip()):
            await ctx.send(f"Removed `{key}` from {kind} of **{sheet.actor.name}**.")
        else:
            await ctx.send(f"**{sheet.actor.name}** has no {kind[:-1]} `{key}`.")

    async def _entry_usage(self, ctx: commands.Context, word: str):
        p = ctx.clean_prefix
        await ctx.send(
            f"- `{p}org {word} add <org> <label> [| description]`\n"
            f"- `{p}org {word} edit <org> <key> <label> [| description]`\n"
            f"- `{p}org {word} sort <org> <key> <position>`\n"
            f"- `{p}org {word} remove <org> <key>`"
        )

    @org_group.group(name="power", invoke_without_command=True)
    async def power_group(self, ctx: commands.Context):
        await self._entry_usage(ctx, "power")

    @power_group.command(name="add")
    async def power_add(self, ctx: commands.Context, name: str, *, text: str):
        await self._add(ctx, "powers", name, text)

    @power_group.command(name="edit")
    async def power_edit(self, ctx: commands.Context, name: str, key: str, *, text: str):
        await self._edit(ctx, "powers", name, key, text)

    @power_group.command(name="sort")
    async def power_sort(self, ctx: commands.Context, name: str, key: str, position: int):
        await self._sort(ctx, "powers", name, key, position)

    @power_group.command(name="remove")
    async def power_remove(self, ctx: commands.Context, name: str, key: str):
        await self._remove(ctx, "powers", name, key)

    @org_group.group(name="feature", invoke_without_command=True)
    async def feature_group(self, ctx: commands.Context):
        await self._entry_usage(ctx, "feature")

    @feature_group.command(name="add")
    async def feature_add(self, ctx: commands.Context, name: str, *, text: str):
        await self._add(ctx, "features", name, text)

    @feature_group.command(name="edit")
    async def feature_edit(self, ctx: commands.Context, name: str, key: str, *, text: str):
        await self._edit(ctx, "features", name, key, text)

    @feature_group.command(name="sort")
    async def feature_sort(self, ctx: commands.Context, name: str, key: str, position: int):
        await self._sort(ctx, "features", name, key, position)

    @feature_group.command(name="remove")
    async def feature_remove(self, ctx: commands.Context, name: str, key: str):
        await self._remove(ctx, "features", name, key)

    # ---- pool / rolls ----

    async def _show_pool(self, ctx: commands.Context, sheet: OrganizationSheet):
        pool = sheet.record.power_pool
        lines = "\n".join(f"- {k}: {v}" for k, v in sorted(pool.items())) or "- (empty)"
        await ctx.send(f"**{sheet.actor.name}** power pool:\n" + lines)

    @org_group.group(name="pool", invoke_without_command=True)
    async def pool_group(self, ctx: commands.Context):
        p = ctx.clean_prefix
        await ctx.send(f"Use `{p}org pool set <org> <name> [value]` or `{p}org pool remove <org> <name>`.")

    @pool_group.command(name="set")
    async def pool_set(self, ctx: commands.Context, name: str, pool_name: str, value: Optional[int] = None):
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        await sheet.set_pool(pool_name, value)
        await self._show_pool(ctx, sheet)

    @pool_group.command(name="remove")
    async def pool_remove(self, ctx: commands.Context, name: str, pool_name: str):
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        if not await sheet.remove_pool(pool_name):
            await ctx.send(f"**{sheet.actor.name}** has no pool entry `{pool_name}`.")
            return
        await self._show_pool(ctx, sheet)

    @org_group.command(name="roll")
    async def roll(self, ctx: commands.Context, name: str, skill: str):
        skill = skill.lower()
        if skill not in SKILLS and skill != "power":
            await ctx.send(f"Roll one of: {', '.join(SKILLS)}, power")
            return
        sheet = await self._sheet(ctx, name)
        if not sheet:
            return
        if skill == "power":
            await sheet.roll_power_die()
        else:
            await sheet.roll_skill(skill)

    @org_group.command(name="delete")
    async def delete_org(self, ctx: commands.Context, *, name: str):
        actor = await self.host.repo.find_actor_by_name(ctx.guild.id, name, "organization")
        if actor is None:
            await ctx.send(f"No organization named **{name}**.")
            return
        cfg = await self.host.cfg_repo.get(ctx.guild.id)
        if not is_editable(ctx.author, actor, cfg):
            await ctx.send("You don’t have permission to do that.")
            return
        await self.host.repo.delete_actor(actor.id)
        await ctx.send(f"Deleted **{actor.name}**.")


async def setup(bot: commands.Bot):
    await bot.add_cog(OrganizationCog(bot))
