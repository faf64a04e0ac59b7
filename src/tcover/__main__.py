"""Allow running tcover as ``python -m tcover``."""

from tcover.cli import main

if __name__ == "__main__":
    main()
