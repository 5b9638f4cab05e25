"""
Replay an active learning session offline, with the CSV's labels answering for the human.

Usage (from project root):
  python scripts/simulate_session.py --data patches.csv --rounds 5 --batch-size 5
"""

import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
  sys.path.insert(0, SRC_DIR)

try:
  from al_selector.simulation import main as simulate_main
except ModuleNotFoundError as e:
  raise ModuleNotFoundError(
    "Could not import al_selector from src/. Please run from project root or ensure 'src' is on PYTHONPATH."
  ) from e


if __name__ == "__main__":
  sys.exit(simulate_main())
