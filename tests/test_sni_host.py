from barmods.sni_host import Host, HostItem, split_service


def make_host():
    added, removed = [], []
    return Host(added.append, removed.append), added, removed


def test_split_service_with_path():
    assert split_service(":1.42/org/ayatana/Item") == (":1.42", "/org/ayatana/Item")


def test_split_service_without_path():
    assert split_service("org.example.App") == ("org.example.App", "/StatusNotifierItem")


def test_host_names_use_pid_and_paths():
    host, _, _ = make_host()
    assert host.bus_name.startswith("org.kde.StatusNotifierHost-")
    assert host.object_path.startswith("/StatusNotifierHost/")
    assert host.bus_name.rsplit("-", 1)[1] == host.object_path.rsplit("/", 1)[1]


def test_add_registered_item_calls_on_add_once():
    host, added, _ = make_host()
    first = host.add_registered_item("org.example.App")
    again = host.add_registered_item("org.example.App/StatusNotifierItem")
    assert first == HostItem("org.example.App", "/StatusNotifierItem")
    assert again is None
    assert added == [first]
    assert host.items == (first,)


def test_item_unregistered_removes_and_notifies():
    host, _, removed = make_host()
    host.add_registered_item("org.example.A")
    item_b = host.add_registered_item("org.example.B/path")
    assert host.item_unregistered("org.example.B/path") == item_b
    assert removed == [item_b]
    assert [i.bus_name for i in host.items] == ["org.example.A"]


def test_item_unregistered_unknown_is_none():
    host, _, removed = make_host()
    assert host.item_unregistered("org.example.Missing") is None
    assert removed == []


def test_name_vanished_clears_items_silently():
    host, _, removed = make_host()
    host.add_registered_item("org.example.A")
    host.name_vanished()
    assert host.items == ()
    assert removed == []