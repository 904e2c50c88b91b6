"""
Email-style digest cards.
"""

import html
from dataclasses import dataclass
from datetime import datetime

from courtside.database.models import Preferences
from .models import DigestMode, GamePreview, GameSummary
from .state import FetchPhase, ModeState


@dataclass(frozen=True)
class CardStyle:
    title: str
    time_label: str
    subtitle_prefix: str
    idle_heading: str
    idle_prompt: str
    action: str
    loading_message: str
    empty_message: str
    color: str


CARD_STYLES = {
    DigestMode.PREVIEW: CardStyle(
        title="Your Daily Game Plan",
        time_label="Today, 6:00 AM",
        subtitle_prefix="Upcoming games for",
        idle_heading="Ready for the day?",
        idle_prompt=(
            "Generate your personalized daily digest to see upcoming games "
            "for your {count} favorite teams."
        ),
        action="Generate 6:00 AM Email",
        loading_message="Scouting upcoming matchups...",
        empty_message="No games scheduled for your teams today. Time to rest and recover!",
        color="#2563EB",
    ),
    DigestMode.SUMMARY: CardStyle(
        title="Today's Match Summary",
        time_label="Today, 10:00 PM",
        subtitle_prefix="Results for",
        idle_heading="The Final Whistle",
        idle_prompt=(
            "Wrap up your day with scores and highlights from today's action "
            "involving your favorites."
        ),
        action="Generate 10:00 PM Email",
        loading_message="Gathering match results...",
        empty_message="No final scores recorded for your teams today.",
        color="#059669",
    ),
}

COACHS_CORNER = (
    "Don't forget to set your alarms! It's going to be an exciting day of sports."
)


def short_date(day: datetime) -> str:
    """e.g. "Monday, Jan 1"."""
    return f"{day:%A}, {day:%b} {day.day}"


def render_text(
    mode: DigestMode,
    state: ModeState,
    preferences: Preferences,
    today: datetime,
) -> str:
    """Render a mode's card as plain text."""
    style = CARD_STYLES[mode]

    if state.phase is FetchPhase.LOADING:
        return style.loading_message

    if state.data is None:
        prompt = style.idle_prompt.format(count=len(preferences.teams))
        return f"{style.idle_heading}\n{prompt}\n[{style.action}]"

    lines = [
        f"{style.title}  ({style.time_label})",
        f"{style.subtitle_prefix} {short_date(today)}",
        f"To: {preferences.email}",
        "",
    ]

    if not state.data:
        lines.append(style.empty_message)
        return "\n".join(lines)

    for game in state.data:
        if isinstance(game, GamePreview):
            lines.append(f"* {game.matchup}  [Upcoming]")
            lines.append(f"  {game.time} on {game.broadcaster}")
        elif isinstance(game, GameSummary):
            lines.append(f"* {game.matchup}  [FINAL]")
            lines.append(f"  {game.score}")
            lines.append(f"  See Full Stats & Highlights: {game.details_link}")

    if mode is DigestMode.PREVIEW:
        lines.extend(["", "Coach's Corner", COACHS_CORNER])

    return "\n".join(lines)


def render_html(
    mode: DigestMode,
    state: ModeState,
    preferences: Preferences,
    today: datetime,
) -> str:
    """Render a loaded mode's card as an HTML email body."""
    style = CARD_STYLES[mode]
    color = style.color
    esc = html.escape

    if state.data is None:
        body = f'<div class="empty">{esc(style.loading_message if state.loading else style.idle_heading)}</div>'
    elif not state.data:
        body = f'<div class="empty">{esc(style.empty_message)}</div>'
    else:
        rows = []
        for game in state.data:
            if isinstance(game, GamePreview):
                rows.append(f"""
        <div class="game">
            <div class="matchup">{esc(game.matchup)} <span class="badge">Upcoming</span></div>
            <div class="meta">{esc(game.time)} &middot; {esc(game.broadcaster)}</div>
        </div>""")
            elif isinstance(game, GameSummary):
                rows.append(f"""
        <div class="game">
            <div class="matchup">{esc(game.matchup)} <span class="badge">FINAL</span></div>
            <div class="score">{esc(game.score)}</div>
            <a href="{esc(game.details_link)}">See Full Stats &amp; Highlights &rarr;</a>
        </div>""")
        body = "".join(rows)
        if mode is DigestMode.PREVIEW:
            body += f"""
        <div class="corner">
            <h5>Coach's Corner</h5>
            <p>{esc(COACHS_CORNER)}</p>
        </div>"""

    return f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 0; padding: 20px; }}
        .card {{ border-top: 4px solid {color}; padding: 15px; background-color: #f9f9f9; }}
        .title {{ font-size: 22px; font-weight: bold; color: #111; }}
        .subtitle {{ color: #555; margin-bottom: 15px; }}
        .meta {{ color: #888; font-size: 12px; }}
        .game {{ padding: 10px 0; border-bottom: 1px solid #eee; }}
        .matchup {{ font-weight: bold; }}
        .badge {{ font-size: 11px; color: {color}; }}
        .score {{ font-family: monospace; font-size: 16px; }}
        .empty {{ text-align: center; color: #888; font-style: italic; padding: 20px; }}
        a {{ color: {color}; text-decoration: none; }}
    </style>
</head>
<body>
    <div class="card">
        <div class="meta">To: {esc(preferences.email)} &middot; {esc(style.time_label)}</div>
        <div class="title">{esc(style.title)}</div>
        <div class="subtitle">{esc(style.subtitle_prefix)} {esc(short_date(today))}</div>{body}
    </div>
</body>
</html>
"""
