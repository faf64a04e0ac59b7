"""Root conftest.py: makes the local tcover sources importable without installing."""

from __future__ import annotations

import sys
from pathlib import Path

# `import tcover` should resolve to src/tcover even when an older
# tcover is installed in the environment.
_src_root = str(Path(__file__).parent / "src")
if _src_root not in sys.path:
    sys.path.insert(0, _src_root)
