import pytest

from cogs_knw.embeds import asset_url, organization_embed, roll_embed, warfare_embed
from cogs_knw.organization import OrganizationSheet
from cogs_knw.rolls import RollResult
from cogs_knw.warfare import WarfareSheet


def test_asset_url():
    assert asset_url("https://cdn.example/knw/", "/assets/icons/levy.png") == "https://cdn.example/knw/assets/icons/levy.png"
    assert asset_url("", "assets/icons/levy.png") is None
    assert asset_url("", "https://img.example/x.png") == "https://img.example/x.png"


@pytest.mark.asyncio
async def test_warfare_embed_fields(repo, services, i18n):
    actor = repo.add("Iron Guard", "warfare", {"atk": 2, "experience": "levy"})
    sheet = WarfareSheet(actor, services, editable=True)

    embed = warfare_embed(await sheet.get_data(), i18n, tab="traits", asset_base_url="https://cdn.example")

    assert embed.title == "Iron Guard"
    assert embed.description == "**Levy Infantry**"
    assert embed.thumbnail.url == "https://cdn.example/assets/icons/levy.png"
    fields = {f.name: f.value for f in embed.fields}
    assert fields["ATK"] == "🎲 +2"
    assert fields["DEF"] == "10"
    assert fields["Commander"] == "No commander"
    assert fields["Traits"] == "No traits"


@pytest.mark.asyncio
async def test_organization_embed_tabs(repo, services, i18n):
    actor = repo.add("Silver Hand", "organization", {
        "size": 2,
        "features": {"vault": {"label": "Vault", "description": "Deep."}},
    })
    sheet = OrganizationSheet(actor, services, editable=False)
    data = await sheet.get_data()

    powers = {f.name: f.value for f in organization_embed(data, i18n, tab="powers").fields}
    features = {f.name: f.value for f in organization_embed(data, i18n, tab="features").fields}

    assert powers["Power Die"] == "d6 (Small)"
    assert powers["Powers"] == "None"
    assert features["Features"] == "**Vault**: Deep."


def test_roll_embed_marks_natural_d20_results(repo, i18n):
    actor = repo.add("Iron Guard", "warfare")
    crit = RollResult(label="atk", formula="1d20 + 2", rolls=[20], bonus=2, total=22)
    plain = RollResult(label="atk", formula="1d20 + 2", rolls=[7], bonus=2, total=9)
    power = RollResult(label="PowerDie", formula="1d8", rolls=[1], bonus=0, total=1)

    assert roll_embed(actor, crit, "Attack", i18n).description == "`1d20 + 2` → [20] = **22** (natural 20)"
    assert roll_embed(actor, plain, "Attack", i18n).description == "`1d20 + 2` → [7] = **9**"
    assert "natural" not in roll_embed(actor, power, "Power Die", i18n).description
