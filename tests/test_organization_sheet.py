import random

import pytest
from pydantic import ValidationError

from cogs_knw.models import OrganizationRecord
from cogs_knw.organization import OrganizationSheet, search_organizations, slugify


def make_sheet(repo, services, system=None, *, editable=True):
    actor = repo.add("Silver Hand", "organization", system or {})
    return OrganizationSheet(actor, services, editable=editable)


@pytest.mark.asyncio
async def test_get_data_context(repo, services):
    sheet = make_sheet(repo, services, {
        "org": {"type": "Guild", "specialization": "Spies"},
        "dip": 2, "esp": 0,
        "rlv": {"score": 13, "level": 2},
        "size": 3,
        "powerPool": {"gold": 5},
        "powers": {"b": {"label": "Bribes", "sort": 2}, "a": {"label": "Ambush", "sort": 1}},
    })

    data = await sheet.get_data()

    assert data["skills"]["dip"]["value"] == "+2"
    assert data["skills"]["esp"]["value"] == "+0"
    assert data["skills"]["lor"]["value"] == "—"
    assert data["skills"]["dip"]["label"] == "Diplomacy"
    assert data["defenses"]["rlv"] == {"label": "Resolve", "score": 13, "level": "Good"}
    assert data["size"] == "Medium"
    assert data["powerDie"] == "d8"
    assert data["powerPool"] == {"gold": 5}
    assert [p["key"] for p in data["powers"]] == ["a", "b"]
    assert data["features"] == []


@pytest.mark.asyncio
async def test_update_field_validates_and_coerces(repo, services):
    sheet = make_sheet(repo, services)

    await sheet.update_field("dip", "3")
    await sheet.update_field("com.level", 2)

    assert repo.updates == [
        (sheet.actor.id, {"system.dip": 3}),
        (sheet.actor.id, {"system.com.level": 2}),
    ]
    assert sheet.record.dip == 3
    assert sheet.record.com.level == 2


@pytest.mark.asyncio
async def test_update_field_rejects_bad_values(repo, services):
    sheet = make_sheet(repo, services)

    with pytest.raises(ValidationError):
        await sheet.update_field("size", 9)
    with pytest.raises(ValidationError):
        await sheet.update_field("rsc.level", 5)
    with pytest.raises(ValueError):
        await sheet.update_field("powerDie", 8)
    assert repo.updates == []


@pytest.mark.asyncio
async def test_set_pool(repo, services):
    sheet = make_sheet(repo, services)

    await sheet.set_pool("Gold", None)
    await sheet.set_pool("Soldiers", 12)

    assert sheet.record.power_pool == {"gold": 4, "soldiers": 12}
    with pytest.raises(ValidationError):
        await sheet.set_pool("gold", 13)


@pytest.mark.asyncio
async def test_add_and_remove_entries(repo, services):
    sheet = make_sheet(repo, services)

    first = await sheet.add_entry("powers", "Shadow Network", "See everything.")
    second = await sheet.add_entry("powers", "Shadow Network")

    assert first == "shadow-network"
    assert second == "shadow-network-2"
    entries = sheet.record.sorted_entries("powers")
    assert [(k, e.sort) for k, e in entries] == [("shadow-network", 1), ("shadow-network-2", 2)]
    assert entries[0][1].description == "See everything."

    assert await sheet.remove_entry("powers", first) is True
    assert list(sheet.record.powers) == ["shadow-network-2"]
    assert await sheet.remove_entry("powers", "missing") is False


@pytest.mark.asyncio
async def test_add_entry_rejects_bad_kind_or_blank_label(repo, services):
    sheet = make_sheet(repo, services)
    with pytest.raises(ValueError):
        await sheet.add_entry("spells", "Fireball")
    with pytest.raises(ValueError):
        await sheet.add_entry("features", "   ")


@pytest.mark.asyncio
async def test_roll_skill(repo, services):
    sheet = make_sheet(repo, services, {"esp": 3})

    await sheet.roll_skill("esp")
    await sheet.roll_skill("lor")

    (_, esp), (_, lor) = services.rolls.published
    assert esp.bonus == 3
    assert lor.bonus == 0
    with pytest.raises(ValueError):
        await sheet.roll_skill("atk")


@pytest.mark.asyncio
async def test_set_pool_without_value_uses_pool_default(repo, services):
    sheet = make_sheet(repo, services)

    await sheet.set_pool("Spies")

    assert repo.updates[-1][1] == {"system.powerPool.spies": OrganizationRecord.pool_entry_default()}


@pytest.mark.asyncio
async def test_remove_pool(repo, services):
    sheet = make_sheet(repo, services, {"powerPool": {"gold": 5, "spies": 2}})

    assert await sheet.remove_pool("Gold") is True
    assert sheet.record.power_pool == {"spies": 2}
    assert await sheet.remove_pool("gold") is False


@pytest.mark.asyncio
async def test_update_entry_changes_only_given_fields(repo, services):
    sheet = make_sheet(repo, services, {
        "features": {"vault": {"label": "Vault", "description": "Old gold.", "sort": 1}},
    })

    await sheet.update_entry("features", "vault", label="  Deep Vault ")

    assert repo.updates[-1][1] == {"system.features.vault.label": "Deep Vault"}
    entry = sheet.record.features["vault"]
    assert (entry.label, entry.description, entry.sort) == ("Deep Vault", "Old gold.", 1)


@pytest.mark.asyncio
async def test_update_entry_sort_reorders(repo, services):
    sheet = make_sheet(repo, services, {
        "powers": {"a": {"label": "Ambush", "sort": 1}, "b": {"label": "Bribes", "sort": 2}},
    })

    await sheet.update_entry("powers", "a", sort=3)

    assert [k for k, _ in sheet.record.sorted_entries("powers")] == ["b", "a"]


@pytest.mark.asyncio
async def test_update_entry_rejects_unknown_key_or_blank_label(repo, services):
    sheet = make_sheet(repo, services, {"powers": {"a": {"label": "Ambush"}}})

    with pytest.raises(ValueError):
        await sheet.update_entry("powers", "missing", label="x")
    with pytest.raises(ValueError):
        await sheet.update_entry("powers", "a", label="  ")
    with pytest.raises(ValueError):
        await sheet.update_entry("spells", "a", sort=1)
    assert await sheet.update_entry("powers", "a") is None
    assert repo.updates == []


@pytest.mark.asyncio
async def test_roll_power_die_uses_size(repo, services):
    sheet = make_sheet(repo, services, {"size": 3})

    await sheet.roll_power_die(random.Random(4))

    (actor, result), = services.rolls.published
    assert actor.id == sheet.actor.id
    assert result.label == "PowerDie"
    assert result.formula == "1d8"
    assert 1 <= result.total <= 8


def test_search_organizations(repo, services):
    spies = repo.add("Silver Hand", "organization", {
        "org": {"type": "Guild", "specialization": "Spies"},
    })
    bank = repo.add("Iron Bank", "organization", {"powers": {"loan": {"label": "Ruinous Loan"}}})

    assert search_organizations([spies, bank], "spies") == [spies]
    assert search_organizations([spies, bank], "LOAN") == [bank]
    assert search_organizations([spies, bank], "iron") == [bank]
    assert search_organizations([spies, bank], "  ") == []


def test_slugify():
    assert slugify("Shadow Network!") == "shadow-network"
    assert slugify("???") == "entry"
