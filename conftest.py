"""
Root conftest.py - Set up Python path before test collection.

The agents/, clients/ and chair_bot/ directories are namespace packages that
live at the repository root, so the root must be importable when the project
is tested from a plain checkout.
"""

import sys
from pathlib import Path

impl_root = Path(__file__).parent
sys.path.insert(0, str(impl_root))
