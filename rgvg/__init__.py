"""Public package surface for rgvg.

Exports ``cg_main`` and ``vg_main`` for programmatic CLI invocation.
The wrapping, rendering, and store primitives live in submodules.
"""

from __future__ import annotations


def cg_main(*args, **kwargs):
    """Lazily import the ``cg`` entrypoint to keep package imports lightweight."""
    from .cli import cg_main as _main

    return _main(*args, **kwargs)


def vg_main(*args, **kwargs):
    """Lazily import the ``vg`` entrypoint."""
    from .cli import vg_main as _main

    return _main(*args, **kwargs)


__all__ = ["cg_main", "vg_main"]
