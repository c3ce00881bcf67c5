"""Emoji markers for diagrams."""

from __future__ import annotations

import random

DEFAULT_EMOJI = "📄"

DIAGRAM_EMOJIS = [
    "📊", "📈", "📉", "🗂️", "📁", "🗃️", "📋", "📝", "✏️", "🖊️",
    "🔷", "🔶", "🔹", "🔸", "⬡", "🔲", "🔳", "▪️", "▫️", "◾",
    "🌐", "🔗", "⛓️", "🧩", "🎯", "💡", "⚡", "🔮", "💎", "🏷️",
    "🚀", "🛸", "🌟", "⭐", "✨", "💫", "🌈", "🎨", "🎭", "🎪",
    "🏔️", "🌋", "🏝️", "🌊", "🌀", "🔥", "❄️", "☁️", "🌙", "☀️",
    "🦋", "🐙", "🦑", "🐬", "🐳", "🦈", "🐠", "🐡", "🦀", "🦞",
    "🍎", "🍊", "🍋", "🍇", "🍓", "🍒", "🥝", "🍑", "🥭", "🍍",
]


def random_emoji() -> str:
    """Pick a random emoji used to tell diagrams apart at a glance."""
    return random.choice(DIAGRAM_EMOJIS)
