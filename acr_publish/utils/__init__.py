"""Utility modules for the ACR publisher."""

from acr_publish.utils.cancel import CancelScope
from acr_publish.utils.shell import ShellError, run, strip_ansi

__all__ = [
    "CancelScope",
    "run",
    "strip_ansi",
    "ShellError",
]
