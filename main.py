"""
BeatSense - Main Entry Point

Example usage:
    python main.py path/to/audio.wav
    python main.py --config config/config.yaml --format json -o report.json a.wav b.wav
"""

import sys

from beatsense.cli import main

if __name__ == "__main__":
    sys.exit(main())
