#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Main entry point for newsreels.
Run this file to start the scheduler (same as `newsreels serve`).
"""
import os
import sys

# Add project root to Python path
project_root = os.path.dirname(os.path.abspath(__file__))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from newsreels.cli import main


if __name__ == "__main__":
    print("=" * 60)
    print("  NewsReels pipeline")
    print("=" * 60)
    sys.exit(main(sys.argv[1:] or ["serve"]))
