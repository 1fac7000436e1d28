"""
Data access layer for actors (PyMongo-backed).

Responsibilities:
1) knw_actors collection:
   - World actors (organizations, warfare units, characters) per guild
   - Partial updates with dotted paths ("system.commander", "system.powerPool.gold")
   - Embedded items / effects stored as arrays on the actor document

2) knw_packs collection:
   - Compendium actors. They can be viewed and dragged but never become a
     unit's commander, so they are always returned with `pack` set.

Implementation notes:
- PyMongo is synchronous, so ALL operations are run via asyncio.to_thread
  to avoid blocking the bot.
- Reads return Actor models (or None); writes that change an actor return
  the updated Actor.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pymongo import ReturnDocument

from cogs_knw.models import Actor, EmbeddedDocument

log = logging.getLogger(__name__)

UUID_RE = re.compile(r"^(?:Compendium\.(?P<pack>[\w-]+(?:\.[\w-]+)?)\.)?Actor\.(?P<id>[\w-]+)$")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex[:16]


def parse_uuid(uuid: str) -> Optional[tuple[Optional[str], str]]:
    """`Actor.<id>` -> (None, id); `Compendium.<pack>.Actor.<id>` -> (pack, id)."""
    m = UUID_RE.match((uuid or "").strip())
    if not m:
        return None
    return m.group("pack"), m.group("id")


class ActorRepo:
    """
    Sync PyMongo wrapped in asyncio.to_thread so discord.py stays responsive.
    """
    def __init__(self, db):
        self.actors = db["knw_actors"]
        self.packs = db["knw_packs"]

    async def ensure_indexes(self) -> None:
        def _do():
            self.actors.create_index([("guild_id", 1), ("type", 1)])
            self.actors.create_index([("guild_id", 1), ("name", 1)])
            self.packs.create_index([("pack", 1)])
        await asyncio.to_thread(_do)

    # ---- actors ----

    async def get_actor(self, actor_id: str, guild_id: int | str | None = None) -> Optional[Actor]:
        """Look an actor up by id; with `guild_id`, only within that guild."""
        query: Dict[str, Any] = {"_id": actor_id}
        if guild_id is not None:
            query["guild_id"] = str(guild_id)
        doc = await asyncio.to_thread(lambda: self.actors.find_one(query))
        return Actor.model_validate(doc) if doc else None

    async def find_actor_by_name(self, guild_id: int, name: str, actor_type: str | None = None) -> Optional[Actor]:
        def _do():
            query: Dict[str, Any] = {
                "guild_id": str(guild_id),
                "name": {"$regex": f"^{re.escape(name.strip())}$", "$options": "i"},
            }
            if actor_type:
                query["type"] = actor_type
            return self.actors.find_one(query)
        doc = await asyncio.to_thread(_do)
        return Actor.model_validate(doc) if doc else None

    async def list_actors(self, guild_id: int, actor_type: str | None = None) -> List[Actor]:
        """
        Returns a fully materialized list to avoid holding a sync cursor across awaits.
        """
        def _do():
            query: Dict[str, Any] = {"guild_id": str(guild_id)}
            if actor_type:
                query["type"] = actor_type
            return list(self.actors.find(query).sort("name", 1))
        docs = await asyncio.to_thread(_do)
        return [Actor.model_validate(d) for d in docs]

    async def create_actor(self, *, guild_id: int, owner_user_id: int, name: str, actor_type: str,
                           system: Dict[str, Any], img: str = "") -> Actor:
        doc = {
            "_id": new_id(),
            "guild_id": str(guild_id),
            "owner_user_id": str(owner_user_id),
            "name": name,
            "type": actor_type,
            "img": img,
            "system": system,
            "items": [],
            "effects": [],
            "created_at": now_utc(),
            "updated_at": now_utc(),
        }
        await asyncio.to_thread(lambda: self.actors.insert_one(doc))
        log.info("Created %s actor %s (%s)", actor_type, name, doc["_id"])
        return Actor.model_validate(doc)

    async def update_actor(self, actor_id: str, changes: Dict[str, Any]) -> Optional[Actor]:
        """Apply a partial update. Keys are dotted paths into the actor document."""
        def _do():
            return self.actors.find_one_and_update(
                {"_id": actor_id},
                {"$set": {**changes, "updated_at": now_utc()}},
                return_document=ReturnDocument.AFTER,
            )
        doc = await asyncio.to_thread(_do)
        return Actor.model_validate(doc) if doc else None

    async def unset_actor_field(self, actor_id: str, path: str) -> Optional[Actor]:
        def _do():
            return self.actors.find_one_and_update(
                {"_id": actor_id},
                {"$unset": {path: ""}, "$set": {"updated_at": now_utc()}},
                return_document=ReturnDocument.AFTER,
            )
        doc = await asyncio.to_thread(_do)
        return Actor.model_validate(doc) if doc else None

    async def delete_actor(self, actor_id: str) -> bool:
        res = await asyncio.to_thread(lambda: self.actors.delete_one({"_id": actor_id}))
        return res.deleted_count > 0

    # ---- drag / drop references ----

    async def resolve_uuid(self, uuid: str, guild_id: int | str | None = None) -> Optional[Actor]:
        """
        World uuids resolve inside `guild_id` when one is given; compendium
        packs are shared by every guild.
        """
        parsed = parse_uuid(uuid)
        if not parsed:
            return None
        pack, actor_id = parsed
        if pack is None:
            return await self.get_actor(actor_id, guild_id)

        doc = await asyncio.to_thread(lambda: self.packs.find_one({"_id": actor_id, "pack": pack}))
        if not doc:
            return None
        return Actor.model_validate({**doc, "pack": pack})

    # ---- embedded documents ----

    async def create_embedded(self, actor_id: str, collection: str, data: Dict[str, Any]) -> EmbeddedDocument:
        doc = EmbeddedDocument.model_validate({"_id": new_id(), **data})
        payload = doc.model_dump(by_alias=True)

        def _do():
            self.actors.update_one(
                {"_id": actor_id},
                {"$push": {collection: payload}, "$set": {"updated_at": now_utc()}},
            )
        await asyncio.to_thread(_do)
        return doc

    async def update_embedded(self, actor_id: str, collection: str, doc_id: str,
                              changes: Dict[str, Any]) -> None:
        def _do():
            self.actors.update_one(
                {"_id": actor_id, f"{collection}._id": doc_id},
                {"$set": {
                    **{f"{collection}.$.{k}": v for k, v in changes.items()},
                    "updated_at": now_utc(),
                }},
            )
        await asyncio.to_thread(_do)

    async def delete_embedded(self, actor_id: str, collection: str, doc_id: str) -> None:
        def _do():
            self.actors.update_one(
                {"_id": actor_id},
                {"$pull": {collection: {"_id": doc_id}}, "$set": {"updated_at": now_utc()}},
            )
        await asyncio.to_thread(_do)
