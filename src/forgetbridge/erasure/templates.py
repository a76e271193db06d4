"""
Placeholder substitution for rule datastore names and key patterns.
"""

import re

# Both placeholders resolve to the erased user's id.
USER_PLACEHOLDERS = ("userId", "playerId")

PLACEHOLDER_PATTERN = re.compile(
    r"\{(" + "|".join(re.escape(name) for name in USER_PLACEHOLDERS) + r")\}"
)


def render_key_template(template: str, user_id: str) -> str:
    """Replace every ``{userId}`` / ``{playerId}`` in ``template``.

    Args:
        template: Datastore name or entry key pattern from a rule.
        user_id: Value substituted for each placeholder.

    Returns:
        The rendered string; unchanged when no placeholder occurs.
    """
    return PLACEHOLDER_PATTERN.sub(lambda _: user_id, template)
