"""Entry point for ``python -m lunartopo``."""

from lunartopo.cli import main

if __name__ == "__main__":
    main()
