"""Shared constants used across bot cogs and utilities."""

from __future__ import annotations

import discord

# Discord accepts at most 25 components per message; one slot is reserved for
# the abort button of the stat picker.
MAX_MESSAGE_COMPONENTS = 25
MAX_STAT_CHOICES = MAX_MESSAGE_COMPONENTS - 1

# Embeds hold at most 25 fields, so long stat summaries are paginated.
EMBED_FIELD_LIMIT = 25

SUCCESS_COLOUR = discord.Colour.green()
FAILURE_COLOUR = discord.Colour.red()
NEUTRAL_COLOUR = discord.Colour.blurple()

LEVEL_UP_EMOJI = "⬆️"
GROUP_EMOJI = "📂"
