"""Pulumi program: the compiled stack function's return value becomes the
stack outputs (and this module's exports)."""
import os

from stackhost.program import export_outputs

os.environ.setdefault("STACKOUT__ADAPTER__EXPORT", "pulumi")

export_outputs(__name__)
