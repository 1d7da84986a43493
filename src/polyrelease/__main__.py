"""Allow running as ``python -m polyrelease``."""

from polyrelease.cli.app import main

if __name__ == "__main__":
    main()
