"""Command-line entry points for the heating oil price exporter."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` must keep resolving to the module, not the Typer instance, so
# that tests can patch ``cli.app.build_service`` and friends.

__all__ = []
