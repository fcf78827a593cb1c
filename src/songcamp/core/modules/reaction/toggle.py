"""Per-member emoji reactions on a comment.

Reactions map an emoji to the set of member emails that reacted with it. A
toggle adds the member when absent and removes them when present, so applying
the same toggle twice restores the original map. The functions here never
mutate their input; the mutation gateway relies on the untouched original for
rollback.
"""

from collections.abc import Mapping, Set

from pydantic import BaseModel

# Emoji offered by the reaction picker; any other emoji already present on a comment can be toggled too
REACTION_PALETTE: tuple[str, ...] = ("👍", "❤️", "😂", "🎵", "🔥", "👏")


class ReactionCount(BaseModel):
    """One emoji chip as shown under a comment."""

    emoji: str
    count: int
    reacted: bool  # Whether the viewing member is among the reactors


def toggle_reaction(reactions: Mapping[str, Set[str]], emoji: str, user_email: str) -> dict[str, set[str]]:
    """Return a copy of reactions with user_email toggled for emoji."""
    result = {key: set(users) for key, users in reactions.items()}
    users = result.setdefault(emoji, set())
    if user_email in users:
        users.discard(user_email)
        if not users:
            del result[emoji]
    else:
        users.add(user_email)
    return result


def is_storable_emoji(emoji: str) -> bool:
    """Whether emoji can be used as a reaction key; stored rows use it in field paths."""
    return bool(emoji) and "." not in emoji and not emoji.startswith("$")


def has_reacted(reactions: Mapping[str, Set[str]], emoji: str, user_email: str) -> bool:
    return user_email in reactions.get(emoji, ())


def summarize_reactions(reactions: Mapping[str, Set[str]], viewer_email: str) -> list[ReactionCount]:
    return [
        ReactionCount(emoji=emoji, count=len(users), reacted=viewer_email in users)
        for emoji, users in reactions.items()
        if users
    ]
