"""Interactive prompt helpers for CLI commands.

Everything here writes to stderr: stdout carries the export lines that
the user evals.
"""

from __future__ import annotations

from collections.abc import Sequence

import click

from os_creds.constants import KEYWORD_COLOURS


def keyword_colour(text: str) -> str | None:
    """Colour for text containing an environment keyword such as "production/"."""
    lowered = text.lower()
    for keyword, colour in KEYWORD_COLOURS.items():
        if keyword in lowered:
            return colour
    return None


def highlight(text: str, colour_hint: str | None = None) -> str:
    """Style text with the colour of its environment keyword, if any.

    Args:
        text: Text to display.
        colour_hint: Text to pick the colour from (default: text itself).
    """
    colour = keyword_colour(colour_hint if colour_hint is not None else text)
    return click.style(text, fg=colour, bold=True) if colour else text


def prompt_totp() -> str:
    """Prompt for a TOTP code, retrying if empty.

    Returns:
        Non-empty code with surrounding whitespace removed.

    Raises:
        click.Abort: If input is closed or interrupted.
    """
    while True:
        value: str = click.prompt("Enter TOTP code", type=str, default="", show_default=False, err=True)
        if value.strip():
            return value.strip()
        click.echo("  A code is required.", err=True)


def choose(
    prompt_text: str,
    items: Sequence[tuple[str, str]],
    colour_hint: str | None = None,
) -> str | None:
    """Let the user pick one item from a numbered menu.

    A single item is returned without asking. Entering 0 selects nothing.

    Args:
        prompt_text: Menu heading.
        items: (id, label) pairs in display order.
        colour_hint: Text deciding the highlight colour of every label
            (default: each label's own text).

    Returns:
        The chosen id, or None if there were no items or the user chose 0.
    """
    if not items:
        return None
    if len(items) == 1:
        return items[0][0]

    click.echo(prompt_text, err=True)
    width = len(str(len(items)))
    for index, (_item_id, label) in enumerate(items, start=1):
        click.echo(f"  {index:>{width}}. {highlight(label, colour_hint)}", err=True)

    choice: int = click.prompt(
        "Select (0 to cancel)",
        type=click.IntRange(0, len(items)),
        default=1,
        err=True,
    )
    if choice == 0:
        return None
    return items[choice - 1][0]
