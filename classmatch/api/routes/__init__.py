from . import actions, misc

__all__ = ["actions", "misc"]
