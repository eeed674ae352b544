"""Entry point for `python -m genesisdb`."""

from .cli import main

if __name__ == "__main__":
    main()
