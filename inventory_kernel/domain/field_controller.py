"""
Target-kind field controller.

Responsibility:
    Derives, from the currently selected assignment kind, which target
    field of an assign form is enabled and required and which are cleared.
    The form layer calls ``fields_for`` every time the kind changes and
    never keeps its own enabled/disabled flags.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O, no stored UI state.

Invariants enforced:
    ASSIGNMENT_SHAPE / SINGLE_SEAT_CHANNEL -- exactly one target field is
    active per kind; ``target_from_fields`` refuses values that would put
    something in more than one channel.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from inventory_kernel.domain.assignment_target import (
    UNASSIGNED,
    AssignmentTarget,
    TargetKind,
    make_target,
)
from inventory_kernel.exceptions import InvalidTargetError

# Target fields offered by each assign form
ASSET_CHANNELS: frozenset[TargetKind] = frozenset(
    {TargetKind.USER, TargetKind.LOCATION, TargetKind.ASSET}
)
SEAT_CHANNELS: frozenset[TargetKind] = frozenset({TargetKind.USER, TargetKind.ASSET})


@dataclass(frozen=True)
class FieldAccess:
    """Access rules for the target fields of one form, for one kind."""

    enabled: frozenset[TargetKind]
    required: frozenset[TargetKind]
    cleared: frozenset[TargetKind]

    def is_enabled(self, channel: TargetKind) -> bool:
        return channel in self.enabled

    def is_required(self, channel: TargetKind) -> bool:
        return channel in self.required


def _coerce_kind(kind: TargetKind | str | None) -> TargetKind | None:
    if kind is None or isinstance(kind, TargetKind):
        return kind
    try:
        return TargetKind(kind)
    except ValueError:
        return None


def fields_for(
    kind: TargetKind | str | None,
    channels: frozenset[TargetKind] = ASSET_CHANNELS,
) -> FieldAccess:
    """
    Access rules for the target fields when ``kind`` is selected.

    With no (or an unknown) kind selected nothing is enabled and every
    channel is cleared.

    Raises:
        InvalidTargetError: ``kind`` is a real kind the form does not offer
            (a location on a seat form).
    """
    selected = _coerce_kind(kind)
    if selected is None:
        return FieldAccess(enabled=frozenset(), required=frozenset(), cleared=channels)
    if selected not in channels:
        raise InvalidTargetError(selected.value, None, "kind not offered for this assignment")

    active = frozenset({selected})
    return FieldAccess(enabled=active, required=active, cleared=channels - active)


def apply_kind_change(
    kind: TargetKind | str | None,
    values: Mapping[TargetKind, int | None],
    channels: frozenset[TargetKind] = ASSET_CHANNELS,
) -> dict[TargetKind, int | None]:
    """Return ``values`` with every channel but the active one cleared."""
    access = fields_for(kind, channels)
    return {
        channel: (values.get(channel) if channel in access.enabled else None)
        for channel in channels
    }


def target_from_fields(
    kind: TargetKind | str | None,
    values: Mapping[TargetKind, int | None],
    channels: frozenset[TargetKind] = ASSET_CHANNELS,
) -> AssignmentTarget:
    """
    Build the assignment target from a submitted form.

    Raises:
        InvalidTargetError: the required field is empty, or an inactive
            field still carries a value.
    """
    selected = _coerce_kind(kind)
    access = fields_for(selected, channels)
    stray = sorted(c.value for c in access.cleared if values.get(c) is not None)
    if stray:
        raise InvalidTargetError(
            selected.value if selected else None,
            None,
            f"inactive target field(s) set: {', '.join(stray)}",
        )
    if not access.enabled:
        return UNASSIGNED
    (channel,) = access.enabled
    return make_target(channel, values.get(channel))
