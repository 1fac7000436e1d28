import discord
from discord.ext import commands


class Help(commands.Cog):
    HELP_MESSAGE_TEMPLATE = {
        "embeds": [
            {
                "title": "Help Message",
                "color": 0,
                "fields": [
                    {"name": "Warfare Units",
                     "value": "`         {p}warfare new <name>:` create a warfare unit\n"
                              "`        {p}warfare sheet <name>:` open the unit sheet (rolls, traits, commander, items, effects)\n"
                              "`{p}warfare set <name> <stat> <v>:` set atk/def/pow/tou/mor/com, type, experience, size, casualties\n"
                              "` {p}warfare commander <unit> <a>:` make a character the unit's commander\n"
                              "`   {p}warfare item <unit> <name>:` give the unit an item\n"
                              "`        {p}warfare list / delete:` list or delete units"},

                    {"name": "Organizations",
                     "value": "`             {p}org new <name>:` create an organization\n"
                              "`            {p}org sheet <name>:` open the organization sheet\n"
                              "`           {p}org search <text>:` find organizations by name, type or entry\n"
                              "`  {p}org set <name> <field> <v>:` set skills, defenses, size, type, specialization\n"
                              "`{p}org power|feature add|remove:` manage powers and features\n"
                              "`  {p}org power|feature edit|sort:` relabel or reorder a power or feature\n"
                              "`{p}org pool set <org> <name> [v]:` set a power pool value (default 4)\n"
                              "` {p}org pool remove <org> <name>:` remove a power pool entry\n"
                              "`   {p}org roll <org> <skill>:` roll dip/esp/lor/opr, or power for the power die\n"
                              "`            {p}org list / delete:` list or delete organizations"},

                    {"name": "Characters",
                     "value": "`{p}actor new <name> [prof]:` create a character that can command units\n"
                              "`  {p}actor prof <name> <v>:` change a character's proficiency\n"
                              "`    {p}actor list / delete:` list or delete actors"},

                    {"name": "Mod Commands",
                     "value": "`{p}knwconfig:` locale, gmroles, assets, rollchannel"}
                ]
            }
        ]
    }

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.command()
    async def help(self, ctx):
        discord_embed = Help.HELP_MESSAGE_TEMPLATE

        embed = discord.Embed(title="",
                              color=0)

        for item in discord_embed["embeds"][0]["fields"]:
            embed.add_field(name=item["name"],
                            value=item["value"].format(p=ctx.clean_prefix),
                            inline=False)

        await ctx.channel.send(embed=embed)


async def setup(bot: commands.Bot):
    await bot.add_cog(Help(bot))
