"""
Entry point for running Zircon as a module.

Usage: python -m zircon [command] [options]
"""

from zircon.cli.parser import main

if __name__ == "__main__":
    main()
