"""
Entry point for running the scanner as a module.

Usage:
    python -m polymarket_ev scan --sport nba
    python -m polymarket_ev ev --price 0.30 --odds 150
"""

from polymarket_ev.cli import main

if __name__ == "__main__":
    main()
