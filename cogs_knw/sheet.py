"""
Shared plumbing for actor sheets.

A sheet never reaches for globals. Everything it talks to is handed in
through SheetServices:

- repo:     the actor document store (ActorRepo or anything shaped like it)
- config:   choice tables (KnwConfig)
- i18n:     Localizer for labels and notifications
- notifier: user-facing info / warning messages
- dialogs:  text prompt, delete confirmation, document creation
- renderer: opens another actor's sheet or an embedded document's sheet
- rolls:    publishes roll results

The Discord implementations live in cogs_knw.adapters; tests pass fakes.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from cogs_knw.config import DEFAULT_EFFECT_ICON, KnwConfig
from cogs_knw.i18n import Localizer
from cogs_knw.models import Actor, EmbeddedDocument
from cogs_knw.rolls import RollResult

log = logging.getLogger(__name__)


class Notifier(Protocol):
    async def info(self, message: str) -> None: ...
    async def warn(self, message: str) -> None: ...


class Dialogs(Protocol):
    async def prompt_text(self, *, title: str, instructions: str, value: str,
                          placeholder: str, input_id: str) -> Optional[str]: ...

    async def confirm_delete(self, doc: EmbeddedDocument) -> bool: ...

    async def create_document(self, class_name: str, data: Dict[str, Any],
                              parent: Actor) -> Optional[Dict[str, Any]]: ...


class Renderer(Protocol):
    async def render_actor(self, actor: Actor) -> None: ...
    async def render_embedded(self, parent: Actor, collection: str, doc: EmbeddedDocument) -> None: ...


class RollPublisher(Protocol):
    async def publish(self, actor: Actor, result: RollResult) -> None: ...


@dataclass
class SheetServices:
    repo: Any
    config: KnwConfig
    i18n: Localizer
    notifier: Notifier
    dialogs: Dialogs
    renderer: Renderer
    rolls: RollPublisher


EMBEDDED_ACTIONS = ("edit", "delete", "toggle")


class ActorSheet:
    """Base for the warfare and organization sheets."""

    default_options: Dict[str, Any] = {}

    def __init__(self, actor: Actor, services: SheetServices, *, editable: bool, sheet_id: str = ""):
        self.actor = actor
        self.services = services
        self.editable = editable
        self.id = sheet_id or f"sheet-{actor.id}"

    @property
    def repo(self):
        return self.services.repo

    @property
    def config(self) -> KnwConfig:
        return self.services.config

    @property
    def i18n(self) -> Localizer:
        return self.services.i18n

    @property
    def guild_id(self) -> Optional[str]:
        """The guild (world) this sheet's actor lives in; other actors are looked up inside it."""
        return self.actor.guild_id or None

    async def refresh(self) -> Actor:
        actor = await self.repo.get_actor(self.actor.id)
        if actor:
            self.actor = actor
        return self.actor

    async def _update(self, changes: Dict[str, Any]) -> Optional[Actor]:
        updated = await self.repo.update_actor(self.actor.id, changes)
        if updated:
            self.actor = updated
        return updated

    # -----------------------------
    # Embedded items / effects
    # -----------------------------

    async def handle_embedded_control(self, collection_name: str, action: str, document_id: str) -> None:
        """Edit, delete or toggle one item / effect row."""
        doc = self.actor.embedded(collection_name).get(document_id)
        if doc is None:
            log.warning("No %s %s on actor %s", collection_name, document_id, self.actor.id)
            return

        if action == "edit":
            await self.services.renderer.render_embedded(self.actor, collection_name, doc)
        elif action == "delete":
            if await self.services.dialogs.confirm_delete(doc):
                await self.repo.delete_embedded(self.actor.id, collection_name, doc.id)
                await self.refresh()
        elif action == "toggle":
            await self.repo.update_embedded(self.actor.id, collection_name, doc.id, {"disabled": not doc.disabled})
            await self.refresh()
        else:
            raise ValueError(f"Unknown embedded document action {action!r}")

    async def handle_embedded_create(self, class_name: str) -> Optional[EmbeddedDocument]:
        collection = self.config.document_classes[class_name]
        data = await self.services.dialogs.create_document(
            class_name, {"img": DEFAULT_EFFECT_ICON}, parent=self.actor
        )
        if not data:
            return None
        doc = await self.repo.create_embedded(self.actor.id, collection, data)
        await self.refresh()
        return doc
