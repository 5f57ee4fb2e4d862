"""
gridsnap.config - Settings, shared state and keybindings.

This package contains:
    - settings     : Settings store and the layouts JSON schema
    - global_state : GlobalState, layouts cache and layout selection
    - keybindings  : KeyBindingDispatcher for keyboard tiling
"""

from gridsnap.config.settings import Settings, default_layouts
from gridsnap.config.global_state import GlobalState

__all__ = ["Settings", "default_layouts", "GlobalState"]
