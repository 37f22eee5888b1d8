"""Page-number path templates."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from evangelist.errors import ValidationFailure

PLACEHOLDER = "%d"

REMOTE_TEMPLATE_FIELDS = ("normal", "small", "large")


def with_suffix(template: str, suffix: str) -> str:
    """Insert ``suffix`` right after the placeholder: ``page%d.jpg`` -> ``page%d-small.jpg``."""
    if not suffix:
        return template
    return template.replace(PLACEHOLDER, PLACEHOLDER + suffix, 1)


def resolve_template(template: str, page_number: int) -> str:
    return template.replace(PLACEHOLDER, str(page_number), 1)


@dataclass(frozen=True)
class RemoteTemplates:
    normal: str
    small: str
    large: str

    def for_variant(self, variant: str) -> str:
        return getattr(self, str(variant))


def validate_remote_templates(fields: Mapping[str, Sequence[str]]) -> RemoteTemplates:
    """Check the caller-supplied remote templates before any store I/O."""

    values: dict[str, str] = {}
    for name in REMOTE_TEMPLATE_FIELDS:
        supplied = fields.get(name)
        if not supplied:
            raise ValidationFailure(f"Must specify a remote path template in the '{name}' key.", field=name)
        if len(supplied) != 1:
            raise ValidationFailure(f"Must specify exactly one remote path template in the '{name}' key.", field=name)
        template = str(supplied[0])
        if template.count(PLACEHOLDER) != 1:
            raise ValidationFailure(
                f"Remote path template in the '{name}' key must contain '{PLACEHOLDER}' exactly once.",
                field=name,
            )
        values[name] = template
    return RemoteTemplates(**values)
