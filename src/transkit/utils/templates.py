"""Placeholder substitution for prompt and metadata templates."""

import re
from typing import Mapping

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Render ``{NAME}`` placeholders in a single pass.

    Every placeholder is looked up once in ``values``; substituted text is
    never scanned again, so a value containing ``{OTHER}`` stays literal.
    Placeholders without a value are left untouched.

    Args:
        template: Template text
        values: Mapping from placeholder name to replacement text

    Returns:
        The rendered text
    """

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in values:
            return str(values[name])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_substitute, template)
