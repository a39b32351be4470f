#!/usr/bin/env python3
"""
Market risk engine
Entry point: python -m stone_risk.main <command>
"""
from .cli import main

if __name__ == "__main__":
    main()
