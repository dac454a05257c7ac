"""Allow ``python -m rigrelay``."""

from rigrelay.cli import main

if __name__ == "__main__":
    main()
