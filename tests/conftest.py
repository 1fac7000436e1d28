"""
Shared fixtures for the sheet tests.

The sheets only see SheetServices, so everything here is an in-memory
stand-in: a dict-backed actor store and recording notifier / dialogs /
renderer / roll publisher.
"""
import copy
from typing import Any, Dict, List, Optional

import pytest

from cogs_knw.config import DEFAULT_CONFIG
from cogs_knw.i18n import Localizer
from cogs_knw.models import Actor, EmbeddedDocument
from cogs_knw.repo import new_id, parse_uuid
from cogs_knw.sheet import SheetServices


def _set_path(doc: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    for part in parts[:-1]:
        doc = doc.setdefault(part, {})
    doc[parts[-1]] = value


def _unset_path(doc: Dict[str, Any], path: str) -> None:
    parts = path.split(".")
    for part in parts[:-1]:
        doc = doc.get(part, {})
    doc.pop(parts[-1], None)


class MemoryActorRepo:
    """Dict-backed stand-in for ActorRepo that records every write."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.packs: Dict[str, Dict[str, Any]] = {}
        self.updates: List[tuple[str, Dict[str, Any]]] = []
        self.embedded_updates: List[tuple[str, str, str, Dict[str, Any]]] = []

    def add(self, name: str, actor_type: str, system: Optional[Dict[str, Any]] = None,
            *, pack: str | None = None, owner: str = "1", **extra) -> Actor:
        doc = {
            "_id": extra.pop("_id", new_id()),
            "name": name,
            "type": actor_type,
            "guild_id": "100",
            "owner_user_id": owner,
            "system": system or {},
            "items": [],
            "effects": [],
            **extra,
        }
        if pack:
            doc["pack"] = pack
            self.packs[doc["_id"]] = doc
        else:
            self.docs[doc["_id"]] = doc
        return Actor.model_validate(doc)

    async def get_actor(self, actor_id: str, guild_id=None) -> Optional[Actor]:
        doc = self.docs.get(actor_id)
        if doc is None or (guild_id is not None and doc["guild_id"] != str(guild_id)):
            return None
        return Actor.model_validate(copy.deepcopy(doc))

    async def update_actor(self, actor_id: str, changes: Dict[str, Any]) -> Optional[Actor]:
        self.updates.append((actor_id, dict(changes)))
        doc = self.docs.get(actor_id)
        if doc is None:
            return None
        for path, value in changes.items():
            _set_path(doc, path, copy.deepcopy(value))
        return await self.get_actor(actor_id)

    async def unset_actor_field(self, actor_id: str, path: str) -> Optional[Actor]:
        doc = self.docs.get(actor_id)
        if doc is None:
            return None
        _unset_path(doc, path)
        return await self.get_actor(actor_id)

    async def resolve_uuid(self, uuid: str, guild_id=None) -> Optional[Actor]:
        parsed = parse_uuid(uuid)
        if not parsed:
            return None
        pack, actor_id = parsed
        if pack is None:
            return await self.get_actor(actor_id, guild_id)
        doc = self.packs.get(actor_id)
        return Actor.model_validate({**doc, "pack": pack}) if doc else None

    async def create_embedded(self, actor_id: str, collection: str, data: Dict[str, Any]) -> EmbeddedDocument:
        doc = EmbeddedDocument.model_validate({"_id": new_id(), **data})
        self.docs[actor_id][collection].append(doc.model_dump(by_alias=True))
        return doc

    async def update_embedded(self, actor_id: str, collection: str, doc_id: str,
                              changes: Dict[str, Any]) -> None:
        self.embedded_updates.append((actor_id, collection, doc_id, dict(changes)))
        for d in self.docs[actor_id][collection]:
            if d["_id"] == doc_id:
                d.update(changes)

    async def delete_embedded(self, actor_id: str, collection: str, doc_id: str) -> None:
        self.docs[actor_id][collection] = [d for d in self.docs[actor_id][collection] if d["_id"] != doc_id]


class RecordingNotifier:
    def __init__(self):
        self.infos: List[str] = []
        self.warnings: List[str] = []

    async def info(self, message: str) -> None:
        self.infos.append(message)

    async def warn(self, message: str) -> None:
        self.warnings.append(message)


class ScriptedDialogs:
    """Answers dialogs with preset values and remembers what was asked."""

    def __init__(self):
        self.text_answer: Optional[str] = None
        self.confirm_answer = True
        self.create_answer: Optional[Dict[str, Any]] = None
        self.prompts: List[Dict[str, Any]] = []
        self.confirmed: List[EmbeddedDocument] = []
        self.created: List[tuple[str, Dict[str, Any]]] = []

    async def prompt_text(self, **kwargs) -> Optional[str]:
        self.prompts.append(kwargs)
        return self.text_answer

    async def confirm_delete(self, doc: EmbeddedDocument) -> bool:
        self.confirmed.append(doc)
        return self.confirm_answer

    async def create_document(self, class_name: str, data: Dict[str, Any], parent: Actor):
        self.created.append((class_name, data))
        if self.create_answer is None:
            return None
        return {**data, **self.create_answer}


class RecordingRenderer:
    def __init__(self):
        self.actors: List[Actor] = []
        self.embedded: List[tuple[str, EmbeddedDocument]] = []

    async def render_actor(self, actor: Actor) -> None:
        self.actors.append(actor)

    async def render_embedded(self, parent: Actor, collection: str, doc: EmbeddedDocument) -> None:
        self.embedded.append((collection, doc))


class RecordingRolls:
    def __init__(self):
        self.published = []

    async def publish(self, actor, result) -> None:
        self.published.append((actor, result))


@pytest.fixture
def i18n():
    return Localizer.load("en")


@pytest.fixture
def repo():
    return MemoryActorRepo()


@pytest.fixture
def services(repo, i18n):
    return SheetServices(
        repo=repo,
        config=DEFAULT_CONFIG,
        i18n=i18n,
        notifier=RecordingNotifier(),
        dialogs=ScriptedDialogs(),
        renderer=RecordingRenderer(),
        rolls=RecordingRolls(),
    )
