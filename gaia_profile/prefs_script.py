"""Read and write preference scripts (``user.js`` / ``custom-prefs.js``).

Grammar, one statement per line::

    user_pref("key", value);
    pref("key", value);

``value`` is ``true``, ``false``, an integer or a quoted string. A statement
may be followed by a ``//`` comment.
"""

from __future__ import annotations

import json
import re
from typing import Dict, List, Tuple

from .errors import MalformedDocument
from .preferences import LOCKED, USER, PrefValue, ResolvedPreferences, value_type

_STATEMENT = re.compile(
    r"""^(?P<fn>user_pref|pref)\(\s*
        (?P<key>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')\s*,\s*
        (?P<value>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|[^\s,()]+)\s*\)\s*;?\s*
        (?://.*)?$""",
    re.VERBOSE,
)
_INT = re.compile(r"^-?\d+$")


def format_value(key: str, value: PrefValue) -> str:
    value_type(key, value)
    return json.dumps(value, ensure_ascii=False)


def render_prefs_script(prefs: ResolvedPreferences) -> str:
    lines: List[str] = []
    for key in sorted(prefs.user):
        lines.append(f"user_pref({json.dumps(key)}, {format_value(key, prefs.user[key])});")
    for key in sorted(prefs.locked):
        lines.append(f"pref({json.dumps(key)}, {format_value(key, prefs.locked[key])});")
    return "\n".join(lines) + "\n"


def _unquote(token: str, *, where: str) -> str:
    if token.startswith("'"):
        # Re-quote single-quoted strings as JSON.
        inner = token[1:-1].replace("\\'", "'").replace('"', '\\"')
        token = f'"{inner}"'
    try:
        return json.loads(token)
    except ValueError as e:
        raise MalformedDocument(where, f"bad string literal {token}") from e


def _parse_value(token: str, *, where: str) -> PrefValue:
    if token == "true":
        return True
    if token == "false":
        return False
    if _INT.match(token):
        return int(token)
    if token[:1] in {'"', "'"} and token[-1:] == token[:1]:
        return _unquote(token, where=where)
    raise MalformedDocument(where, f"unsupported preference value {token}")


def parse_prefs_script(text: str, *, source: str = "<prefs>") -> Tuple[Dict[str, PrefValue], Dict[str, PrefValue]]:
    """Return ``(user, locked)`` mappings in statement order."""
    spaces: Dict[str, Dict[str, PrefValue]] = {USER: {}, LOCKED: {}}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("//") or line.startswith("#"):
            continue
        where = f"{source}:{lineno}"
        m = _STATEMENT.match(line)
        if not m:
            raise MalformedDocument(where, f"not a preference statement: {line}")
        key = _unquote(m.group("key"), where=where)
        value = _parse_value(m.group("value"), where=where)
        kind = USER if m.group("fn") == "user_pref" else LOCKED
        spaces[kind][key] = value
    return spaces[USER], spaces[LOCKED]
