import discord
import os
from dotenv import load_dotenv
from discord.ext import commands
import mongodb_client


class KnwBot(commands.Bot):
    def __init__(self):
        # Load environment variables
        load_dotenv()
        self.token = os.getenv("TOKEN")
        if not self.token:
            raise ValueError("Bot token not found in environment variables")
        self.prefix = os.getenv("COMMAND_PREFIX", "k.")

        # Initialize intents
        intents = discord.Intents.default()
        intents.members = True
        intents.message_content = True

        # Call parent constructor
        super().__init__(
            command_prefix=self.prefix,
            help_command=None,
            intents=intents,
            description="Kingdoms & Warfare actor sheets"
        )

        # setup mongodb database
        self.db = mongodb_client.get_database(os.getenv("KNW_DB_NAME", "knw-actors"))


    async def setup_hook(self) -> None:
        """
        Load extensions.
        """
        try:
            await self.load_cogs()
        except Exception as e:
            print(f"Error in setup: {str(e)}")
            raise


    async def load_cogs(self) -> None:
        """
        Load all cogs from the modules directory.
        """
        loaded_cogs = 0
        modules_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "modules")
        for folder in sorted(os.listdir(modules_dir)):
            folder_path = os.path.join(modules_dir, folder)
            if not os.path.isdir(folder_path):
                continue

            for file in sorted(os.listdir(folder_path)):
                if file.startswith("cog") and file.endswith(".py"):
                    try:
                        await self.load_extension(f"modules.{folder}.{file[:-3]}")
                        loaded_cogs += 1
                    except Exception as e:
                        print(f"Failed to load extension {file}: {str(e)}")

        print(f"Successfully loaded {loaded_cogs} cogs")


    async def on_ready(self) -> None:
        """
        Handler for when the bot is ready.
        """
        try:
            await self.change_presence(
                activity=discord.Game(f'Kingdoms & Warfare | {self.prefix}help')
            )

            print(f"Logged in as {self.user} (ID: {self.user.id})")
            print("Ready!")
        except Exception as e:
            print(f"Error in on_ready: {str(e)}")


def main():
    """
    Main entry point for the bot.
    """
    try:
        bot = KnwBot()
        # discord.py installs its logging handler here; cogs_knw loggers inherit it
        bot.run(bot.token, root_logger=True)
    except Exception as e:
        print(f"Failed to start bot: {str(e)}")


if __name__ == "__main__":
    main()
