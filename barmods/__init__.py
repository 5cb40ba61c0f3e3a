"""State and formatting for status bar items: sway, network, temperature, audio and the tray."""

__version__ = "0.1.0"