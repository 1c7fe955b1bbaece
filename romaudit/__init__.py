"""ROM Audit - reconcile ROM set archives against a MAME-style reference catalog."""

from .version import load_version

__version__ = load_version()

__all__ = ["__version__"]
