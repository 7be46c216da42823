"""Discord UI components for the roll drill-down."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import discord

from .constants import (
    FAILURE_COLOUR,
    GROUP_EMOJI,
    LEVEL_UP_EMOJI,
    MAX_STAT_CHOICES,
    NEUTRAL_COLOUR,
    SUCCESS_COLOUR,
)
from .game import RollOutcome
from .models.tree import Stat
from .selection import ABORT_CHOICE
from .session import SessionOutcome, SessionStatus

log = logging.getLogger(__name__)


class OwnedView(discord.ui.View):
    """Base view that restricts interactions to a single Discord user."""

    def __init__(self, owner_id: int | None, *, timeout: float = 60.0) -> None:
        super().__init__(timeout=timeout)
        self.owner_id = owner_id
        self.choice: str | None = None
        self.interaction: discord.Interaction | None = None

    async def interaction_check(self, interaction: discord.Interaction) -> bool:  # type: ignore[override]
        if self.owner_id is None or interaction.user.id == self.owner_id:
            return True
        await interaction.response.send_message(
            "Only the player who started this roll may use these buttons.",
            ephemeral=True,
        )
        return False

    def record(self, interaction: discord.Interaction, choice: str) -> None:
        """Keep the clicked value and the interaction that must be answered."""

        self.choice = choice
        self.interaction = interaction
        self.stop()


class ChoiceButton(discord.ui.Button[OwnedView]):
    """Button that reports its ``custom_id`` to the owning view."""

    def __init__(
        self,
        *,
        choice: str,
        label: str,
        style: discord.ButtonStyle = discord.ButtonStyle.primary,
        emoji: str | None = None,
    ) -> None:
        super().__init__(label=label[:80], custom_id=choice, style=style, emoji=emoji)
        self.choice = choice

    async def callback(self, interaction: discord.Interaction) -> None:  # type: ignore[override]
        view = self.view
        if view is None:
            await interaction.response.send_message(
                "This prompt is no longer available.", ephemeral=True
            )
            return
        view.record(interaction, self.choice)


class StatChoiceView(OwnedView):
    """One button per candidate stat plus an abort button.

    Groups carry a folder emoji and the primary style; leaves, which end the
    drill-down, use the success style.  Discord lays the buttons out five
    per row.
    """

    def __init__(
        self, owner_id: int | None, stats: Sequence[Stat], *, timeout: float = 60.0
    ) -> None:
        super().__init__(owner_id, timeout=timeout)
        if len(stats) > MAX_STAT_CHOICES:
            raise ValueError(f"Cannot offer more than {MAX_STAT_CHOICES} stats at once")
        for stat in stats:
            if stat.is_leaf:
                button = ChoiceButton(
                    choice=stat.id,
                    label=stat.display_name,
                    style=discord.ButtonStyle.success,
                )
            else:
                button = ChoiceButton(
                    choice=stat.id, label=stat.display_name, emoji=GROUP_EMOJI
                )
            self.add_item(button)
        self.add_item(
            ChoiceButton(
                choice=ABORT_CHOICE, label="Abort", style=discord.ButtonStyle.danger
            )
        )


class ConfirmView(OwnedView):
    def __init__(self, owner_id: int | None, *, timeout: float = 60.0) -> None:
        super().__init__(owner_id, timeout=timeout)
        self.add_item(
            ChoiceButton(choice="yes", label="Yes", style=discord.ButtonStyle.success)
        )
        self.add_item(
            ChoiceButton(choice="no", label="No", style=discord.ButtonStyle.secondary)
        )


def describe_threshold(outcome: RollOutcome) -> str:
    if outcome.mastery is None:
        return "-"
    if outcome.modifier:
        return f"{outcome.mastery} {outcome.modifier:+d} = {outcome.threshold}"
    return str(outcome.mastery)


def build_roll_embed(outcome: RollOutcome, *, committed: bool = True) -> discord.Embed:
    """Render a check result.

    With ``committed=False`` the experience and level-up lines are left out,
    since the record was not updated.
    """

    if outcome.successful is None:
        colour = NEUTRAL_COLOUR
    else:
        colour = SUCCESS_COLOUR if outcome.successful else FAILURE_COLOUR
    title = f"**{outcome.player_name}**" if outcome.player_name else "**Roll**"
    roll_text = f"**{outcome.roll}**"
    if outcome.threshold is not None:
        roll_text = f"{roll_text} / {outcome.threshold}"
    embed = discord.Embed(
        title=title,
        description=f"**{outcome.stat}**: {roll_text}",
        colour=colour,
    )
    if len(outcome.path) > 1:
        embed.add_field(name="Stat", value=" › ".join(outcome.path), inline=False)
    if outcome.stat_types:
        embed.add_field(
            name="Type",
            value=", ".join(stat_type.label for stat_type in outcome.stat_types),
            inline=True,
        )
    if outcome.successful is not None:
        embed.add_field(name="Threshold", value=describe_threshold(outcome), inline=True)
        embed.add_field(
            name="Result",
            value="**Success**" if outcome.successful else "**Failure**",
            inline=True,
        )
        if committed:
            embed.add_field(
                name="Experience", value=f"{outcome.experience_gained:+d} xp", inline=True
            )
    if committed and outcome.level_up:
        embed.add_field(
            name=f"{LEVEL_UP_EMOJI} Level up",
            value=f"Mastery {outcome.mastery} → {outcome.new_mastery}",
            inline=False,
        )
    embed.set_footer(text=f"d100, {outcome.law} law")
    return embed


class DiscordRollTransport:
    """Runs a roll session's prompts on top of a slash-command interaction.

    The first prompt answers the command itself; every later prompt (and the
    final result) edits that same message through the button interaction
    that triggered it.
    """

    def __init__(
        self,
        interaction: discord.Interaction,
        *,
        selection_timeout: float,
        confirm_timeout: float,
    ) -> None:
        self._interaction = interaction
        self._pending: discord.Interaction | None = None
        self.owner_id = interaction.user.id
        self.selection_timeout = selection_timeout
        self.confirm_timeout = confirm_timeout

    async def choose(self, prompt: str, stats: Sequence[Stat]) -> str | None:
        view = StatChoiceView(self.owner_id, stats, timeout=self.selection_timeout)
        return await self._ask(prompt, view)

    async def confirm(self, prompt: str) -> bool | None:
        view = ConfirmView(self.owner_id, timeout=self.confirm_timeout)
        answer = await self._ask(prompt, view)
        if answer is None:
            return None
        return answer == "yes"

    async def finish(self, outcome: SessionOutcome) -> None:
        embed: Optional[discord.Embed] = None
        content: str | None = outcome.reason
        if outcome.result is not None:
            embed = build_roll_embed(outcome.result, committed=outcome.resolved)
            if outcome.status is SessionStatus.RESOLVED and outcome.result.player_name:
                content = None
        try:
            await self._show(content=content, embed=embed, view=None)
        except discord.HTTPException:
            log.exception("Could not display the roll outcome")

    async def _ask(self, prompt: str, view: OwnedView) -> str | None:
        try:
            await self._show(content=prompt, embed=None, view=view)
        except discord.HTTPException:
            log.exception("Could not display the prompt")
            return None
        timed_out = await view.wait()
        if timed_out or view.choice is None:
            return None
        self._pending = view.interaction
        return view.choice

    async def _show(
        self,
        *,
        content: str | None,
        embed: discord.Embed | None,
        view: discord.ui.View | None,
    ) -> None:
        pending, self._pending = self._pending, None
        if pending is not None:
            await pending.response.edit_message(content=content, embed=embed, view=view)
        elif not self._interaction.response.is_done():
            kwargs: dict = {"content": content}
            if view is not None:
                kwargs["view"] = view
            if embed is not None:
                kwargs["embed"] = embed
            await self._interaction.response.send_message(**kwargs)
        else:
            await self._interaction.edit_original_response(
                content=content, embed=embed, view=view
            )


__all__ = [
    "ChoiceButton",
    "ConfirmView",
    "DiscordRollTransport",
    "OwnedView",
    "StatChoiceView",
    "build_roll_embed",
    "describe_threshold",
]
