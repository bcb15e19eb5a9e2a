"""Run one incremental update pass against the default index.
Usage:
  python scripts/build_index.py [--limit N]
"""
import sys
from pathlib import Path

# Allow running from repo root
sys.path.append(str(Path(__file__).resolve().parents[1] / "backend"))

from comicindex.cli import main as cli_main

def main():
    sys.exit(cli_main(["--update", *sys.argv[1:]]))

if __name__ == "__main__":
    main()
