"""
Entry point for the sprachcoach challenge engine.

Run with:
    python main.py run
    python main.py --help
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from sprachcoach.cli.main import run_cli  # noqa: E402

if __name__ == "__main__":
    run_cli()
