"""
Entry point for running Zircon CLI as a module.

Usage: python -m zircon.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
