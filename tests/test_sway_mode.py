import json

import pytest

from barmods.sway_ipc import IpcResponse, IpcType
from barmods.sway_mode import Mode, ModeView, escape_markup


def _event(change):
    return json.dumps({"change": change})


def test_escape_markup_entities():
    assert escape_markup("a<b>&'\"") == "a&lt;b&gt;&amp;&apos;&quot;"


def test_escape_markup_leaves_plain_text():
    assert escape_markup("resize mode") == "resize mode"


def test_escape_markup_control_character():
    assert escape_markup("\x01") == "&#x1;"


def test_mode_starts_hidden():
    assert Mode().render() == ModeView(visible=False)


def test_mode_shows_changed_mode():
    mode = Mode()
    mode.on_event(_event("resize"))
    view = mode.render()
    assert view.visible is True
    assert view.text == "resize"
    assert view.tooltip == "resize"


def test_default_mode_hides():
    mode = Mode()
    mode.on_event(_event("resize"))
    mode.on_event(_event("default"))
    assert mode.render().visible is False


def test_custom_format_applied():
    mode = Mode({"format": "<b>{}</b>"})
    mode.on_event(_event("resize"))
    assert mode.render().text == "<b>" + "resize" + "</b>"


def test_mode_name_is_escaped():
    mode = Mode()
    mode.on_event(_event("a&b"))
    assert mode.render().text == escape_markup("a&b")


def test_tooltip_can_be_disabled():
    mode = Mode({"tooltip": False})
    mode.on_event(_event("resize"))
    assert mode.render().tooltip is None


def test_accepts_ipc_response():
    mode = Mode()
    text = _event("launch")
    mode.on_event(IpcResponse(len(text), IpcType.SUBSCRIBE, text))
    assert mode.mode == "launch"


def test_invalid_payload_keeps_state():
    mode = Mode()
    mode.on_event(_event("resize"))
    mode.on_event("not json")
    assert mode.mode == "resize"


@pytest.mark.parametrize("payload", [json.dumps({}), json.dumps({"change": None})])
def test_missing_change_hides(payload):
    mode = Mode()
    mode.on_event(_event("resize"))
    mode.on_event(payload)
    assert mode.render().visible is False