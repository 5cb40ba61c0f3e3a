# barmods

Building blocks for a desktop status bar on Linux. Each module keeps the state
of one bar item and turns it into label text, tooltips and style classes. Your
own code draws them.

## Modules

- `barmods.sway_ipc` is a client for the sway IPC socket.
  - `get_socket_path()` reads `SWAYSOCK`. If that is not set, it runs
    `sway --get-socketpath`.
  - `IpcClient` opens one connection for commands and one for events.
    `send_cmd(type, payload)` sends a command. `subscribe(payload)` subscribes
    to events and raises `IpcError` unless the reply is a success.
    `handle_event()` waits for one event. Replies come back as `IpcResponse`
    and also go to the callbacks registered with `connect_cmd` and
    `connect_event`.
  - `IpcClient` is a context manager. `close()` ends both connections.
  - `encode_message` and `decode_header` handle the wire format. `IpcType`
    lists the message types.
- `barmods.sway_mode`
  - `Mode.on_event(payload)` takes a `mode` event.
  - `Mode.render()` returns a `ModeView`. The view is hidden in the default mode.
  - `escape_markup` escapes text for Pango markup.
- `barmods.sway_window`
  - `Window.on_cmd(payload)` takes a `get_tree` reply.
  - `Window.render()` returns a `WindowView` with the title and the bar classes
    `empty`, `solo` and the application id.
  - `find_focused_node` searches a layout tree and returns a `FocusedNode`.
- `barmods.sway_workspaces`
  - `Workspaces.on_cmd(payload)` takes a workspace list. It filters the list by
    output and adds persistent workspaces.
  - `render()` returns `WorkspaceButton`s in display order, with their classes
    `focused`, `visible`, `urgent` and `persistant`.
  - `scroll(direction_up)` and `click_command(node)` return the command to
    send. `scroll` ignores further calls until a non-workspace command reply
    reaches `on_cmd`.
  - `get_icon` and `cycle_workspace` are available on their own.
    `trim_workspace_name` strips the `N:` prefix.
- `barmods.temperature`
  - `Temperature` reads a thermal zone or an hwmon file. It raises `OSError`
    at construction if the file cannot be opened.
  - `read_temperature()` returns Celsius and Fahrenheit.
  - `render()` returns a `TemperatureView` that says whether the reading is
    critical.
- `barmods.network_stats`
  - `read_netstat(category, key, path)` reads a counter from `/proc/net/netstat`.
  - `pow_format(value, unit)` formats a rate with a k, M or G prefix.
  - `wildcard_match(pattern, text)` matches `*` and `?` patterns.
- `barmods.network`
  - `Network` chooses its interface when it is created. It uses the `interface`
    option, with wildcards. Without that option it takes the default route,
    asked over netlink. It reads the address through psutil.
  - You feed it data with `set_address`, `apply_bss` (Wi-Fi scan data) and
    `update_bandwidth`.
  - `render(bandwidth_down, bandwidth_up)` returns `(text, tooltip)`.
  - `state()` returns a `NetworkState`.
  - Helper functions: `parse_essid`, `signal_percent`, `is_associated`,
    `cidr_from_netmask` and `find_default_route`.
- `barmods.pulseaudio`
  - `Pulseaudio` takes sink and source data as `DeviceInfo` through
    `on_sink_info` and `on_source_info`.
  - `render()` returns a `PulseView` with the `muted` and `bluetooth` classes.
  - `scroll_volume(direction_up)` returns the channel volumes to request for
    the sink.
  - `port_icon` maps a port name to a known port kind.
- `barmods.sni_watcher`
  - `Watcher` keeps the registered hosts and items. `register_host` and
    `register_item` raise `WatcherError` for an invalid bus name.
    `register_host` also raises it for a host that is already registered.
  - Its `on_item_registered` and `on_item_unregistered` listeners receive
    `bus_name + object_path`.
- `barmods.sni_host`
  - `Host` turns those names into `HostItem`s through `add_registered_item`
    and `item_unregistered`. It calls its `on_add` and `on_remove` callbacks.
  - `split_service` splits a registered name into bus name and object path.
- `barmods.sni_item`
  - `Item` stores item properties through `set_property`. `is_valid()` checks
    them.
  - `on_signal(name)` tells you when to refresh properties.
  - `click_action(button)` returns what a click does: show the `"menu"`,
    `ContextMenu`, `Activate`, `SecondaryActivate`, or `None` when the button
    does nothing.
  - `pick_largest_pixmap`, `argb_to_rgba` and `choose_icon_size` deal with icons.
- `barmods.tray`
  - `Tray` connects its own `Watcher` and `Host` and keeps the resulting
    `Item`s.
  - `visible()` is true while it holds items.

## Installation

```
pip install barmods
```

## Examples

```python
from barmods.sway_ipc import IpcClient, IpcType, get_socket_path
from barmods.sway_workspaces import Workspaces

workspaces = Workspaces({"format": "{name}"}, "eDP-1")
with IpcClient(get_socket_path()) as ipc:
    ipc.connect_cmd(lambda res: workspaces.on_cmd(res.payload))
    ipc.send_cmd(IpcType.GET_WORKSPACES, "")
for button in workspaces.render():
    print(button.label, sorted(button.classes))
```

```python
from barmods.temperature import Temperature

print(Temperature({"thermal-zone": 0, "critical-threshold": 80}).render())
```

```python
from barmods.network_stats import pow_format, wildcard_match

print(pow_format(2_500_000, "b/s"))       # 2.5Mb/s
print(wildcard_match("wl*", "wlp3s0"))    # True
```

## Configuration

Each class takes a plain dict of options. These are the options the classes
read:

| Module | Options |
| --- | --- |
| all modules with a label | `format` |
| `Mode`, `Window`, `Network`, `Pulseaudio` | `tooltip` |
| `Network` | `format-<state>`, `tooltip-format`, `tooltip-format-<state>`, `interface`, `family`, `interval`, `format-icons` |
| `Temperature` | `hwmon-path`, `thermal-zone`, `critical-threshold`, `format-critical`, `format-icons` |
| `Pulseaudio` | `format-muted`, `format-bluetooth`, `format-source`, `format-source-muted`, `scroll-step`, `on-scroll-up`, `on-scroll-down`, `format-icons` |
| `Window`, `Workspaces` | `all-outputs` |
| `Workspaces` | `persistant_workspaces`, `format-icons`, `disable-scroll-wraparound`, `disable-markup`, `current-only` |
| `Item` | `icon-size` |
| `Tray` | `spacing` |

## What it does not do

- It draws nothing and has no command to start a bar. The modules hold state
  and produce text, and your code shows it.
- It does not connect to D-Bus. The tray classes keep the registry and the item
  state, and your code passes in the bus traffic.
- It does not talk to a PulseAudio server. You supply sink and source data, and
  you send the volume that `scroll_volume` returns.
- It does not request Wi-Fi scans or listen for link events. The netlink use is
  limited to finding the default route.

## Tests

```
pip install -e ".[test]"
pytest
```