#!/usr/bin/env python3
"""Direct launcher for the Budget Assistant.

This script launches Streamlit with the budget_assistant directory as the app root,
enabling automatic page discovery from the pages/ subdirectory.
"""

import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
app_dir = project_root / "budget_assistant"

if __name__ == "__main__":
    # Streamlit discovers pages/ relative to the script it runs.
    os.chdir(app_dir)
    sys.path.insert(0, str(project_root))
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        "Home.py"
    ])
