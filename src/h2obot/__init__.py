"""H2obot: authoritative drinking-water answers for a location."""

from __future__ import annotations

__version__ = "0.1.0"
