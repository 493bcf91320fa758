"""Preference layers and their resolution into user/locked spaces.

A build contributes preferences from several layers. Each layer holds
``user`` entries (written with ``user_pref``) and ``locked`` entries (written
with ``pref``). Layers are applied base first, then variant overlays, then the
distribution overlay; the last value set for a key within a kind wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from .build_config import VARIANTS, BuildConfig
from .errors import ConfigurationConflict, UnknownVariant

logger = logging.getLogger(__name__)

PrefValue = Union[bool, int, str]

USER = "user"
LOCKED = "locked"
KINDS = (USER, LOCKED)

# Lower rank is applied first.
SOURCE_RANK = {"base": 0, "variant": 1, "distribution": 2}


def value_type(key: str, value: object) -> str:
    # bool is checked before int since bool subclasses int.
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, str):
        return "string"
    raise ConfigurationConflict(key, f"unsupported preference value {value!r} ({type(value).__name__})")


@dataclass(frozen=True)
class PreferenceEntry:
    key: str
    value: PrefValue
    kind: str = USER

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"preference kind must be one of {KINDS}, got {self.kind!r}")


@dataclass(frozen=True)
class PreferenceLayer:
    name: str
    source: str = "base"
    entries: Tuple[PreferenceEntry, ...] = ()
    removals: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.source not in SOURCE_RANK:
            raise ValueError(f"unknown layer source {self.source!r}")

    @classmethod
    def from_tables(
        cls,
        name: str,
        source: str = "base",
        *,
        user: Mapping[str, PrefValue] | None = None,
        locked: Mapping[str, PrefValue] | None = None,
        remove: Iterable[str] = (),
    ) -> "PreferenceLayer":
        entries: List[PreferenceEntry] = []
        for key, value in (user or {}).items():
            entries.append(PreferenceEntry(key, value, USER))
        for key, value in (locked or {}).items():
            entries.append(PreferenceEntry(key, value, LOCKED))
        return cls(name=name, source=source, entries=tuple(entries), removals=tuple(remove))


@dataclass(frozen=True)
class ResolvedPreferences:
    user: Dict[str, PrefValue] = field(default_factory=dict)
    locked: Dict[str, PrefValue] = field(default_factory=dict)

    def __contains__(self, key: object) -> bool:
        return key in self.user or key in self.locked

    def get(self, key: str, default: object = None) -> object:
        if key in self.locked:
            return self.locked[key]
        return self.user.get(key, default)


def order_layers(layers: Sequence[PreferenceLayer]) -> List[PreferenceLayer]:
    """Stable sort by source precedence; registry order is kept within a source."""
    return sorted(layers, key=lambda layer: SOURCE_RANK[layer.source])


def resolve(layers: Sequence[PreferenceLayer], config: BuildConfig) -> ResolvedPreferences:
    if config.variant not in VARIANTS:
        raise UnknownVariant(config.variant)

    user: Dict[str, PrefValue] = {}
    locked: Dict[str, PrefValue] = {}
    types: Dict[str, Tuple[str, str]] = {}

    for layer in order_layers(layers):
        for entry in layer.entries:
            tag = value_type(entry.key, entry.value)
            seen = types.get(entry.key)
            if seen is not None and seen[0] != tag:
                raise ConfigurationConflict(
                    entry.key,
                    f"{tag} value in layer {layer.name!r} conflicts with {seen[0]} value in layer {seen[1]!r}",
                )
            types[entry.key] = (tag, layer.name)
            space = locked if entry.kind == LOCKED else user
            space[entry.key] = entry.value

        for key in layer.removals:
            removed = key in user or key in locked
            user.pop(key, None)
            locked.pop(key, None)
            logger.debug("Layer %s removed %s (present=%s)", layer.name, key, removed)

        logger.debug("Applied preference layer %s (%d entries)", layer.name, len(layer.entries))

    for key in locked:
        user.pop(key, None)

    return ResolvedPreferences(user=user, locked=locked)
