"""Run script for the Boss Timer Discord bot."""
import sys
from pathlib import Path

# Add src to path so the package runs without being installed
project_root = Path(__file__).parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

# Import and run main
from boss_timer.main import main

if __name__ == "__main__":
    sys.exit(main())
