"""Business logic services module."""

import importlib as _importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .otp_relay import CodeExtractor as CodeExtractor
    from .otp_relay import CodeRegistry as CodeRegistry

_LAZY_MODULE_MAP = {
    "CodeExtractor": ("src.services.otp_relay", "CodeExtractor"),
    "CodeRegistry": ("src.services.otp_relay", "CodeRegistry"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str):
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
