from __future__ import annotations

import pytest

from gaia_profile.errors import MalformedDocument
from gaia_profile.preferences import ResolvedPreferences
from gaia_profile.prefs_script import parse_prefs_script, render_prefs_script


def test_render_sorts_user_before_locked() -> None:
    prefs = ResolvedPreferences(
        user={"b.flag": True, "a.count": 3},
        locked={"z.name": 'say "hi"'},
    )
    assert render_prefs_script(prefs) == (
        'user_pref("a.count", 3);\n'
        'user_pref("b.flag", true);\n'
        'pref("z.name", "say \\"hi\\"");\n'
    )


def test_parse_statements_and_comments() -> None:
    text = """
// Distribution overrides
# shell-style comment
user_pref("b2g.tablet.mode", true);
user_pref('ui.name', 'Tablet');
pref("dom.max", -1);
pref("dom.label", "a, b");
"""
    user, locked = parse_prefs_script(text)
    assert user == {"b2g.tablet.mode": True, "ui.name": "Tablet"}
    assert locked == {"dom.max": -1, "dom.label": "a, b"}


def test_parse_rejects_unknown_statement() -> None:
    with pytest.raises(MalformedDocument) as exc:
        parse_prefs_script('lockPref("a", 1);\n', source="custom-prefs.js")
    assert exc.value.path == "custom-prefs.js:1"


def test_parse_allows_trailing_comments() -> None:
    text = (
        'pref("a.b", true); // tablet only\n'
        'user_pref("homepage", "http://example.org/x);//y"); // quoted text is kept\n'
        'user_pref("c", 3);//no space\n'
    )
    user, locked = parse_prefs_script(text)
    assert locked == {"a.b": True}
    assert user == {"homepage": "http://example.org/x);//y", "c": 3}


def test_parse_rejects_float_values() -> None:
    with pytest.raises(MalformedDocument):
        parse_prefs_script('user_pref("ratio", 1.5);\n')


def test_rendered_script_parses_back() -> None:
    prefs = ResolvedPreferences(user={"u": "x\ny", "n": 0}, locked={"l": False})
    assert parse_prefs_script(render_prefs_script(prefs)) == (prefs.user, prefs.locked)
