"""Make the checkout importable when tests run without an installed package.

``import rgvg`` must resolve to the working tree even when pytest is started
from a console script whose sys.path lacks the repository root.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = str(Path(__file__).resolve().parents[1])

if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)
