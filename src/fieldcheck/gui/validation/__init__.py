"""
Asynchronous field validation for Qt forms.

This package provides the Checker controller together with its debounced
trigger, error display reconciler and rendering surface.
"""

from .checker import Checker, read_value
from .error_display import ErrorDisplay, Transition
from .surface import AnimationStep, ErrorSurface, QtErrorSurface, RegionShape
from .trigger import DebouncedTrigger

__all__ = [
    "AnimationStep",
    "Checker",
    "DebouncedTrigger",
    "ErrorDisplay",
    "ErrorSurface",
    "QtErrorSurface",
    "RegionShape",
    "Transition",
    "read_value",
]
