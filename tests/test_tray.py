from barmods.sni_host import HostItem
from barmods.sni_item import Item
from barmods.tray import Tray


def test_empty_tray_is_hidden():
    tray = Tray({})
    assert tray.visible() is False
    assert tray.items == ()


def test_spacing_from_config():
    assert Tray({"spacing": 5}).spacing == 5
    assert Tray({"spacing": -1}).spacing == 0


def test_add_and_remove_items():
    tray = Tray({})
    item = Item("org.example.App", "/StatusNotifierItem", {})
    tray.on_add(item)
    assert tray.visible() is True
    assert tray.items == (item,)
    tray.on_remove(HostItem("org.example.App", "/StatusNotifierItem"))
    assert tray.items == ()
    assert tray.visible() is False


def test_remove_unknown_item_keeps_others():
    tray = Tray({})
    item = Item("org.example.App", "/a", {})
    tray.on_add(item)
    tray.on_remove(HostItem("org.example.Other", "/a"))
    assert tray.items == (item,)


def test_registration_through_watcher():
    tray = Tray({"icon-size": 24})
    watch = tray.watcher.register_item("org.example.App")
    assert len(tray.items) == 1
    shown = tray.items[0]
    assert (shown.bus_name, shown.object_path) == ("org.example.App", "/StatusNotifierItem")
    assert shown.icon_size == 24
    tray.watcher.name_vanished(watch)
    assert tray.items == ()
    assert tray.visible() is False