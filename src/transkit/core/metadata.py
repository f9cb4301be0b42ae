"""Metadata block written at the top of translated files."""

import json
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from transkit.core.config import MetadataTemplate
from transkit.core.types import WorkUnit
from transkit.utils.templates import render_template


class MetadataFormatter:
    """Renders the metadata block for a work unit."""

    def __init__(
        self,
        template: MetadataTemplate,
        model_name: str,
        temperature: float,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the formatter.

        Args:
            template: Metadata layout settings
            model_name: Model reported in the block
            temperature: Sampling temperature reported in the block
            clock: Source of the timestamp. Defaults to the current UTC time.
        """
        self.template = template
        self.model_name = model_name
        self.temperature = temperature
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def generate(self, unit: WorkUnit) -> str:
        """Generate the metadata block, including its start and end marks."""
        return "\n".join(
            [
                self.template.start_mark,
                self._content(unit),
                self.template.end_mark,
                "",
            ]
        )

    def _values(self, unit: WorkUnit) -> Dict[str, str]:
        values = {
            "SOURCE_LANG": unit.source_lang or "auto",
            "TARGET_LANG": unit.target_lang,
        }
        if self.template.include_timestamp:
            values["TIMESTAMP"] = self._clock().isoformat()
        if self.template.include_model:
            values["MODEL"] = self.model_name
        if self.template.include_config:
            values["CONFIG"] = json.dumps(
                {
                    "skip_proper_nouns": unit.skip_proper_nouns,
                    "skip_code_blocks": unit.skip_code_blocks,
                    "temperature": self.temperature,
                },
                indent=2,
            )
        # Custom fields never shadow the built-in placeholders
        for key, value in self.template.custom_fields.items():
            values.setdefault(key, value)
        return values

    def _content(self, unit: WorkUnit) -> str:
        values = self._values(unit)

        if self.template.template:
            return render_template(self.template.template, values)

        lines = [
            "Translation metadata:",
            f"Source language: {values['SOURCE_LANG']}",
            f"Target language: {values['TARGET_LANG']}",
        ]
        if "TIMESTAMP" in values:
            lines.append(f"Translated at: {values['TIMESTAMP']}")
        if "MODEL" in values:
            lines.append(f"Model: {values['MODEL']}")
        if "CONFIG" in values:
            lines.append(f"Translation config: {values['CONFIG']}")
        for key, value in self.template.custom_fields.items():
            lines.append(f"{key}: {value}")
        return "\n".join(lines)
