"""
Entry point for running dnsscan as a module.

Usage: python -m dnsscan [OPTIONS] COMMAND [ARGS]...
"""

from .cli import main

if __name__ == "__main__":
    main()
