"""
finalboss.services.embeds — Discord embed for drop announcements
=================================================================
"""

from __future__ import annotations

import discord

from finalboss.services.models import DropRecord


def build_drop_embed(drop: DropRecord, clan_name: str) -> discord.Embed:
    """Gold "Notable Drop!" embed; quantity only shown for stacks."""
    embed = discord.Embed(
        title="\U0001f389 Notable Drop!",
        color=discord.Color.gold(),
        timestamp=drop.created_at,
    )
    embed.add_field(name="Player", value=drop.rsn or "Unknown", inline=True)
    embed.add_field(name="Item", value=drop.item_name or "Unknown", inline=True)
    embed.add_field(name="Value", value=drop.formatted_value, inline=True)
    embed.add_field(name="Source", value=drop.source or "Unknown", inline=True)
    if drop.quantity > 1:
        embed.add_field(name="Quantity", value=str(drop.quantity), inline=True)
    embed.set_footer(text=clan_name)
    return embed
