"""
Guild configuration repository (PyMongo-backed) for the actor sheets.

Responsibilities:
- Store and retrieve per-guild settings in Mongo:
    - locale: which cogs_knw/lang/<locale>.json labels sheets use
    - gm_role_ids: roles that may edit every sheet (owners can always edit theirs)
    - asset_base_url: prefix for unit icons so embeds can show thumbnails
    - roll_channel_id: where stat/skill rolls are posted (defaults to the sheet's channel)

Implementation notes:
- Uses synchronous PyMongo under the hood.
- Wraps all DB work in asyncio.to_thread to avoid blocking Discord's event loop.
"""

from __future__ import annotations
import asyncio
from typing import Any, Dict, List, Optional

DEFAULTS = {
    "locale": "en",
    "gm_role_ids": [],
    "asset_base_url": "",
    "roll_channel_id": None,
}


class GuildConfigRepo:
    """
    Uses synchronous PyMongo under the hood, wrapped with asyncio.to_thread.
    """
    def __init__(self, db):
        self.col = db["guild_config"]

    async def get(self, guild_id: int) -> Dict[str, Any]:
        def _get():
            cfg = self.col.find_one({"guild_id": str(guild_id)})
            if not cfg:
                cfg = {"guild_id": str(guild_id), **DEFAULTS}
                self.col.insert_one(cfg)
            # backfill defaults
            patch = {}
            for k, v in DEFAULTS.items():
                if k not in cfg:
                    cfg[k] = v
                    patch[k] = v
            if patch:
                self.col.update_one({"guild_id": str(guild_id)}, {"$set": patch}, upsert=True)
            return cfg

        return await asyncio.to_thread(_get)

    async def _set(self, guild_id: int, key: str, value: Any) -> None:
        def _do():
            self.col.update_one(
                {"guild_id": str(guild_id)},
                {"$set": {key: value}},
                upsert=True
            )
        await asyncio.to_thread(_do)

    async def set_locale(self, guild_id: int, locale: str) -> None:
        await self._set(guild_id, "locale", locale)

    async def set_gm_roles(self, guild_id: int, role_ids: List[int]) -> None:
        await self._set(guild_id, "gm_role_ids", [str(x) for x in role_ids])

    async def set_asset_base_url(self, guild_id: int, url: str) -> None:
        await self._set(guild_id, "asset_base_url", url.rstrip("/"))

    async def set_roll_channel(self, guild_id: int, channel_id: Optional[int]) -> None:
        await self._set(guild_id, "roll_channel_id", str(channel_id) if channel_id else None)
