"""Root conftest: make the src-layout promptrouter package importable from a plain checkout."""

import sys
from pathlib import Path

_src = str(Path(__file__).parent / "src")
if _src not in sys.path:
    sys.path.insert(0, _src)
