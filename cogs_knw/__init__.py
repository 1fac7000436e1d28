"""
cogs_knw package

Kingdoms & Warfare actor sheets for Discord:
- Organization and warfare-unit record shapes (validated with pydantic)
- Mongo-backed actor store with embedded items/effects
- Sheet controllers that turn button clicks into document updates
- Discord embeds, views and modals that host the sheets
"""
