"""Allow ``python -m itharness``."""

from itharness.cli import main

if __name__ == "__main__":
    main()
