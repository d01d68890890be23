"""
Entry point for ``python -m diffline``.
"""

from .cli import main

if __name__ == '__main__':
    main()
