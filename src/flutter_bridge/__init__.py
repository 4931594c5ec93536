"""flutter-bridge: drive the Flutter SDK command-line tool from a host IDE."""

__version__ = "0.1.0"
