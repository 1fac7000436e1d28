import pytest

from cogs_knw.config import DEFAULT_EFFECT_ICON, LEVY_ICON, UNIT_TYPES
from cogs_knw.warfare import TRAIT_PLACEHOLDER, WarfareSheet, parse_traits


def make_sheet(repo, services, system=None, *, editable=True, **extra):
    actor = repo.add("Iron Guard", "warfare", system or {}, **extra)
    return WarfareSheet(actor, services, editable=editable, sheet_id=f"warfare-{actor.id}")


# ---- traits / display ----

@pytest.mark.parametrize("raw, expected", [
    ("", None),
    ("Adaptable; Stalwart", ["Adaptable", "Stalwart"]),
    ("  Adaptable ;Stalwart  ", ["Adaptable", "Stalwart"]),
    ("Adaptable", ["Adaptable"]),
])
def test_parse_traits(raw, expected):
    assert parse_traits(raw) == expected


def test_type_image_levy_infantry(repo, services):
    sheet = make_sheet(repo, services, {"type": "infantry", "experience": "levy"})
    assert sheet.type_image == LEVY_ICON


def test_type_image_from_config(repo, services):
    sheet = make_sheet(repo, services, {"type": "cavalry", "experience": "levy"})
    assert sheet.type_image == UNIT_TYPES["cavalry"].img

    sheet = make_sheet(repo, services, {"type": "infantry", "experience": "veteran"})
    assert sheet.type_image == UNIT_TYPES["infantry"].img


@pytest.mark.asyncio
async def test_get_data_formats_core_stats(repo, services):
    commander = repo.add("Aric", "character", {"attributes": {"prof": 3}})
    sheet = make_sheet(repo, services, {
        "atk": 2, "def": 14, "pow": 0, "tou": 12, "mor": -1, "com": 1,
        "traitList": "Adaptable; Stalwart", "commander": commander.id,
    })

    data = await sheet.get_data()
    stats = data["coreStats"]

    assert stats["atk"] == {"label": "ATK", "value": "+2", "rollable": "rollable"}
    assert stats["pow"]["value"] == "+0"
    assert stats["mor"]["value"] == "-1"
    assert stats["com"]["value"] == "+1"
    assert stats["def"] == {"label": "DEF", "value": 14}
    assert stats["tou"] == {"label": "TOU", "value": 12}
    assert data["traits"] == ["Adaptable", "Stalwart"]
    assert data["commander"].name == "Aric"
    assert data["choices"]["TYPE"] is sheet.config.unit_types


@pytest.mark.asyncio
async def test_get_data_not_rollable_when_read_only(repo, services):
    sheet = make_sheet(repo, services, editable=False)
    data = await sheet.get_data()
    assert all(data["coreStats"][k]["rollable"] == "" for k in ("atk", "pow", "mor", "com"))
    assert data["commander"] is None
    assert data["traits"] is None


def test_default_options(repo, services):
    options = make_sheet(repo, services).default_options
    assert options["width"] == 600
    assert options["height"] == 360
    assert options["tabs"][0]["initial"] == "traits"
    assert options["tabs"][0]["choices"] == ["traits", "items", "effects"]


# ---- commander drop ----

@pytest.mark.asyncio
async def test_drop_world_actor_with_prof_sets_commander(repo, services):
    sheet = make_sheet(repo, services)
    aric = repo.add("Aric", "character", {"attributes": {"prof": 3}})

    result = await sheet.on_drop_actor({"type": "Actor", "uuid": aric.uuid})

    assert result is not False
    assert repo.updates == [(sheet.actor.id, {"system.commander": aric.id})]
    assert sheet.unit.commander == aric.id
    assert services.notifier.warnings == []


@pytest.mark.asyncio
async def test_drop_pack_actor_is_refused(repo, services):
    sheet = make_sheet(repo, services)
    hero = repo.add("Compendium Hero", "character", {"attributes": {"prof": 4}}, pack="dnd5e.heroes")

    result = await sheet.on_drop_actor({"type": "Actor", "uuid": hero.uuid})

    assert result is False
    assert repo.updates == []
    assert services.notifier.warnings == [services.i18n.localize("KNW.Warfare.Commander.Warning.Pack")]


@pytest.mark.asyncio
@pytest.mark.parametrize("system", [{}, {"attributes": {}}, {"attributes": {"prof": 0}}])
async def test_drop_actor_without_prof_is_refused(repo, services, system):
    sheet = make_sheet(repo, services)
    peasant = repo.add("Peasant", "npc", system)

    result = await sheet.on_drop_actor({"type": "Actor", "uuid": peasant.uuid})

    assert result is False
    assert repo.updates == []
    assert services.notifier.warnings == [services.i18n.localize("KNW.Warfare.Commander.Warning.NoProf")]


@pytest.mark.asyncio
async def test_drop_actor_from_another_guild_is_refused(repo, services):
    sheet = make_sheet(repo, services)
    outsider = repo.add("Spy", "character", {"attributes": {"prof": 3}}, guild_id="999")

    result = await sheet.on_drop_actor({"type": "Actor", "uuid": outsider.uuid})

    assert result is False
    assert repo.updates == []
    assert sheet.unit.commander == ""
    assert services.notifier.warnings == [services.i18n.localize("KNW.Warfare.Commander.Warning.World")]


@pytest.mark.asyncio
async def test_drop_unknown_actor_warns(repo, services):
    sheet = make_sheet(repo, services)

    assert await sheet.on_drop_actor({"type": "Actor", "uuid": "Actor.nobody"}) is False
    assert repo.updates == []
    assert services.notifier.warnings == [services.i18n.localize("KNW.Warfare.Commander.Warning.World")]


@pytest.mark.asyncio
async def test_commander_from_another_guild_is_not_shown(repo, services):
    outsider = repo.add("Spy", "character", {"attributes": {"prof": 3}}, guild_id="999")
    sheet = make_sheet(repo, services, {"commander": outsider.id})

    data = await sheet.get_data()
    await sheet.view_commander(outsider.id)

    assert data["commander"] is None
    assert services.renderer.actors == []


@pytest.mark.asyncio
async def test_drop_ignored_when_read_only_or_not_an_actor(repo, services):
    aric = repo.add("Aric", "character", {"attributes": {"prof": 3}})

    read_only = make_sheet(repo, services, editable=False)
    assert await read_only.on_drop_actor({"type": "Actor", "uuid": aric.uuid}) is False

    sheet = make_sheet(repo, services)
    assert await sheet.on_drop_actor({"type": "Item", "uuid": aric.uuid}) is False

    assert repo.updates == []
    assert services.notifier.warnings == []


# ---- commander menu ----

def test_commander_menu_clear_requires_editable(repo, services):
    editable = make_sheet(repo, services)
    read_only = make_sheet(repo, services, editable=False)

    assert [e.condition for e in editable.commander_menu] == [True, True]
    assert [e.condition for e in read_only.commander_menu] == [True, False]
    assert editable.commander_menu[0].name == "View Commander"
    assert editable.commander_menu[1].name == "Clear Commander"


@pytest.mark.asyncio
async def test_view_commander_renders_actor(repo, services):
    aric = repo.add("Aric", "character", {"attributes": {"prof": 3}})
    sheet = make_sheet(repo, services, {"commander": aric.id})

    await sheet.commander_menu[0].callback(aric.id)

    assert [a.id for a in services.renderer.actors] == [aric.id]


@pytest.mark.asyncio
async def test_view_missing_commander_warns(repo, services):
    sheet = make_sheet(repo, services, {"commander": "gone"})

    await sheet.view_commander("gone")

    assert services.renderer.actors == []
    assert services.notifier.warnings == [services.i18n.localize("KNW.Warfare.Commander.Missing")]


@pytest.mark.asyncio
async def test_clear_commander_notifies_once_and_clears(repo, services):
    aric = repo.add("Aric", "character", {"attributes": {"prof": 3}})
    sheet = make_sheet(repo, services, {"commander": aric.id})

    await sheet.commander_menu[1].callback(aric.id)

    assert services.notifier.infos == ["Aric no longer commands Iron Guard."]
    assert repo.updates == [(sheet.actor.id, {"system.commander": ""})]
    assert sheet.unit.commander == ""


# ---- traits editor ----

@pytest.mark.asyncio
async def test_configure_traits_writes_raw_text(repo, services):
    sheet = make_sheet(repo, services, {"traitList": "Adaptable"})
    services.dialogs.text_answer = "  Adaptable ;Stalwart;  "

    await sheet.configure_traits()

    assert repo.updates == [(sheet.actor.id, {"system.traitList": "  Adaptable ;Stalwart;  "})]
    prompt = services.dialogs.prompts[0]
    assert prompt["value"] == "Adaptable"
    assert prompt["placeholder"] == TRAIT_PLACEHOLDER
    assert prompt["input_id"] == f"{sheet.id}-traits"


@pytest.mark.asyncio
async def test_configure_traits_dismissed_writes_nothing(repo, services):
    sheet = make_sheet(repo, services, {"traitList": "Adaptable"})
    services.dialogs.text_answer = None

    assert await sheet.configure_traits() is None
    assert repo.updates == []


# ---- rolls ----

@pytest.mark.asyncio
async def test_roll_stat_publishes_result(repo, services):
    sheet = make_sheet(repo, services, {"mor": -1})

    await sheet.roll_stat("mor")

    actor, result = services.rolls.published[0]
    assert actor.id == sheet.actor.id
    assert result.label == "mor"
    assert result.bonus == -1
    assert result.total == result.natural - 1


# ---- embedded documents ----

def _with_docs(repo, services):
    sheet = make_sheet(repo, services, items=[
        {"_id": "i1", "name": "Spears", "type": "base", "disabled": False},
    ], effects=[
        {"_id": "e1", "name": "Inspired", "disabled": False},
    ])
    return sheet


@pytest.mark.asyncio
async def test_toggle_flips_only_disabled(repo, services):
    sheet = _with_docs(repo, services)

    await sheet.handle_embedded_control("effects", "toggle", "e1")

    assert repo.embedded_updates == [(sheet.actor.id, "effects", "e1", {"disabled": True})]
    assert sheet.actor.embedded("effects")["e1"].disabled is True
    assert sheet.actor.embedded("effects")["e1"].name == "Inspired"


@pytest.mark.asyncio
async def test_edit_renders_embedded_sheet(repo, services):
    sheet = _with_docs(repo, services)

    await sheet.handle_embedded_control("items", "edit", "i1")

    assert [(c, d.id) for c, d in services.renderer.embedded] == [("items", "i1")]
    assert repo.embedded_updates == []


@pytest.mark.asyncio
async def test_delete_asks_for_confirmation(repo, services):
    sheet = _with_docs(repo, services)

    services.dialogs.confirm_answer = False
    await sheet.handle_embedded_control("items", "delete", "i1")
    assert "i1" in sheet.actor.embedded("items")

    services.dialogs.confirm_answer = True
    await sheet.handle_embedded_control("items", "delete", "i1")
    assert "i1" not in sheet.actor.embedded("items")
    assert len(services.dialogs.confirmed) == 2


@pytest.mark.asyncio
async def test_unknown_control_action_raises(repo, services):
    sheet = _with_docs(repo, services)
    with pytest.raises(ValueError):
        await sheet.handle_embedded_control("items", "explode", "i1")


@pytest.mark.asyncio
async def test_create_effect_seeds_default_icon(repo, services):
    sheet = make_sheet(repo, services)
    services.dialogs.create_answer = {"name": "Rallied", "description": ""}

    doc = await sheet.handle_embedded_create("ActiveEffect")

    assert services.dialogs.created == [("ActiveEffect", {"img": DEFAULT_EFFECT_ICON})]
    assert doc.img == DEFAULT_EFFECT_ICON
    assert doc.name == "Rallied"
    assert doc.id in sheet.actor.embedded("effects")


@pytest.mark.asyncio
async def test_create_cancelled_adds_nothing(repo, services):
    sheet = make_sheet(repo, services)
    services.dialogs.create_answer = None

    assert await sheet.handle_embedded_create("Item") is None
    assert sheet.actor.items == []
