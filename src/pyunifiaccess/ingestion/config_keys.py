"""Device-update configuration key mapping.

``access.data.device.update`` events describe hub I/O as ``{key, value}`` pairs.
This table translates them into state fields.

Polarity note: ``input_state_dps`` reports ``off`` while the door position
switch is *open*. That matches how hub door sensors are wired and must not be
"fixed".
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pyunifiaccess.models.device import LockState
from pyunifiaccess.state.events import StateField

_logger = logging.getLogger(__name__)

_KEEP = object()


@dataclass(frozen=True)
class ConfigKeyRule:
    field: StateField
    values: Mapping[str, Any]
    default: Any


@dataclass(frozen=True)
class ConfigMapping:
    """Result of mapping one configuration entry.

    ``value`` is ``None`` when the raw value was unrecognised and the rule says
    to keep whatever is stored.
    """

    key: str
    field: StateField
    value: Any
    recognized: bool


_AUX_VALUES: Mapping[str, bool] = {"on": False, "off": True}

CONFIG_KEY_RULES: Mapping[str, ConfigKeyRule] = {
    "input_state_dps": ConfigKeyRule(
        field=StateField.DOOR_CONTACT_CLOSED,
        values={"off": False, "on": True},
        default=False,
    ),
    "input_state_rly-lock_dry": ConfigKeyRule(
        field=StateField.LOCK_STATE,
        values={"on": LockState.UNLOCKED, "off": LockState.LOCKED},
        default=_KEEP,
    ),
    "input_state_rex": ConfigKeyRule(field=StateField.REQUEST_TO_EXIT, values=_AUX_VALUES, default=False),
    "input_state_ren": ConfigKeyRule(field=StateField.REQUEST_TO_ENTER, values=_AUX_VALUES, default=False),
    "input_state_rel": ConfigKeyRule(field=StateField.RELAY, values=_AUX_VALUES, default=False),
}


def map_config_entry(key: str, raw_value: Any) -> ConfigMapping | None:
    """Translate a ``{key, value}`` pair. Returns ``None`` for untracked keys."""
    rule = CONFIG_KEY_RULES.get(key)
    if rule is None:
        return None

    normalized = str(raw_value).strip().lower() if raw_value is not None else ""
    if normalized in rule.values:
        return ConfigMapping(key=key, field=rule.field, value=rule.values[normalized], recognized=True)

    if rule.default is _KEEP:
        _logger.warning("Unhandled value %r for %s; keeping current %s", raw_value, key, rule.field.value)
        return ConfigMapping(key=key, field=rule.field, value=None, recognized=False)

    _logger.warning("Unhandled value %r for %s; defaulting to %r", raw_value, key, rule.default)
    return ConfigMapping(key=key, field=rule.field, value=rule.default, recognized=False)
