"""
Embed builders: the "templates" that turn sheet display contexts into
Discord embeds.

Responsibilities:
- Warfare unit sheet (core stats, active tab: traits / items / effects, commander)
- Organization sheet (skills, defenses, power die + pool, powers / features)
- Embedded item / effect sheet
- Roll results

Pure formatting only: no Mongo, no interaction handling.
"""

from __future__ import annotations
from typing import Any, Dict, List

import discord

from cogs_knw.i18n import Localizer
from cogs_knw.models import Actor, EmbeddedDocument
from cogs_knw.rolls import RollResult

FIELD_LIMIT = 1024


def _clip(text: str, limit: int = FIELD_LIMIT) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def asset_url(base_url: str, path: str) -> str | None:
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    if not base_url:
        return None
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _doc_lines(docs: List[EmbeddedDocument], i18n: Localizer) -> str:
    if not docs:
        return i18n.localize("KNW.Organization.Empty")
    lines = []
    for d in docs:
        mark = "~~" if d.disabled else ""
        lines.append(f"• {mark}{d.name}{mark}")
    return _clip("\n".join(lines))


def warfare_embed(context: Dict[str, Any], i18n: Localizer, *, tab: str = "traits",
                  asset_base_url: str = "") -> discord.Embed:
    actor: Actor = context["actor"]
    unit = context["system"]
    choices = context["choices"]

    unit_type = i18n.localize(choices["TYPE"][unit.type].label)
    experience = i18n.localize(choices["EXPERIENCE"][unit.experience])

    e = discord.Embed(
        title=actor.name,
        description=f"**{experience} {unit_type}**",
        color=discord.Color.dark_red(),
    )
    thumb = asset_url(asset_base_url, context["typeImage"])
    if thumb:
        e.set_thumbnail(url=thumb)

    for key, stat in context["coreStats"].items():
        value = str(stat["value"])
        if stat.get("rollable"):
            value = f"🎲 {value}"
        e.add_field(name=stat["label"], value=value, inline=True)

    e.add_field(
        name=i18n.localize("KNW.Warfare.Size"),
        value=f"{unit.size} ({i18n.localize('KNW.Warfare.Casualties')}: {unit.casualties})",
        inline=True,
    )

    commander: Actor | None = context.get("commander")
    e.add_field(
        name=i18n.localize("KNW.Warfare.Commander.Label"),
        value=commander.name if commander else i18n.localize("KNW.Warfare.Commander.None"),
        inline=True,
    )

    title = i18n.localize(f"KNW.Warfare.Tabs.{tab}")
    if tab == "items":
        body = _doc_lines(context["items"], i18n)
    elif tab == "effects":
        body = _doc_lines(context["effects"], i18n)
    else:
        traits = context["traits"]
        body = _clip(", ".join(traits)) if traits else i18n.localize("KNW.Warfare.Traits.None")
    e.add_field(name=title, value=body, inline=False)

    e.set_footer(text=f"Actor ID: {actor.id}")
    return e


def organization_embed(context: Dict[str, Any], i18n: Localizer, *, tab: str = "powers") -> discord.Embed:
    actor: Actor = context["actor"]
    org = context["org"]

    subtitle = " · ".join(p for p in (org.type, org.specialization) if p)
    e = discord.Embed(
        title=actor.name,
        description=f"**{subtitle}**" if subtitle else None,
        color=discord.Color.dark_gold(),
    )

    for key, skill in context["skills"].items():
        e.add_field(name=skill["label"], value=str(skill["value"]), inline=True)

    for key, d in context["defenses"].items():
        e.add_field(name=d["label"], value=f"{d['score']} ({d['level']})", inline=True)

    e.add_field(
        name=i18n.localize("KNW.Organization.PowerDie"),
        value=f"{context['powerDie']} ({context['size']})",
        inline=True,
    )

    pool = context["powerPool"]
    pool_text = "\n".join(f"{k}: {v}" for k, v in sorted(pool.items())) if pool else i18n.localize("KNW.Organization.Empty")
    e.add_field(name=i18n.localize("KNW.Organization.PowerPool"), value=_clip(pool_text), inline=True)

    kind = "features" if tab == "features" else "powers"
    entries = context[kind]
    if entries:
        body = "\n".join(
            f"**{x['label']}**" + (f": {x['description']}" if x["description"] else "")
            for x in entries
        )
    else:
        body = i18n.localize("KNW.Organization.Empty")
    e.add_field(name=i18n.localize(f"KNW.Organization.{kind.capitalize()}"), value=_clip(body), inline=False)

    e.set_footer(text=f"Actor ID: {actor.id}")
    return e


def embedded_embed(parent: Actor, collection: str, doc: EmbeddedDocument, *,
                   asset_base_url: str = "") -> discord.Embed:
    e = discord.Embed(
        title=doc.name,
        description=_clip(doc.description or "", 4096) or None,
        color=discord.Color.greyple() if doc.disabled else discord.Color.blurple(),
    )
    e.add_field(name="Type", value=doc.type, inline=True)
    e.add_field(name="Status", value="Disabled" if doc.disabled else "Active", inline=True)
    thumb = asset_url(asset_base_url, doc.img)
    if thumb:
        e.set_thumbnail(url=thumb)
    e.set_footer(text=f"{parent.name} · {collection} · {doc.id}")
    return e


def roll_embed(actor: Actor, result: RollResult, label: str, i18n: Localizer) -> discord.Embed:
    description = f"`{result.formula}` → {result.rolls} = **{result.total}**"
    if result.formula.startswith("1d20") and result.natural in (1, 20):
        description += f" (natural {result.natural})"
    e = discord.Embed(
        title=i18n.format("KNW.Roll.Result", actor=actor.name, stat=label),
        description=description,
        color=discord.Color.green(),
    )
    return e
