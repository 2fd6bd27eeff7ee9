"""Partition an edited option list against the options currently stored.

Submitted options with an id are updates, without an id are creates, and
stored ids absent from the submission are deletes. The caller deletes the
dependent stakes of every removed option before the option itself.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from src.gb_common.errors import ValidationError

MIN_OPTIONS = 2


@dataclass
class OptionInput:
    label: str
    odds: float
    id: str | None = None


@dataclass
class OptionDiff:
    to_update: list[OptionInput] = field(default_factory=list)
    to_create: list[OptionInput] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)


def diff_options(existing_ids: Iterable[str], submitted: Sequence[OptionInput]) -> OptionDiff:
    """Raises ValidationError for foreign or repeated ids and for < 2 options."""
    if len(submitted) < MIN_OPTIONS:
        raise ValidationError(f"At least {MIN_OPTIONS} options are required")

    existing = list(existing_ids)
    known = set(existing)
    diff = OptionDiff()
    seen: set[str] = set()
    for option in submitted:
        if option.id is None:
            diff.to_create.append(option)
            continue
        if option.id not in known:
            raise ValidationError(f"Unknown option id: {option.id}")
        if option.id in seen:
            raise ValidationError(f"Duplicate option id: {option.id}")
        seen.add(option.id)
        diff.to_update.append(option)

    diff.to_delete = [option_id for option_id in existing if option_id not in seen]
    return diff
