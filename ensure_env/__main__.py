"""Allow ``python -m ensure_env``."""

from .cli import main

if __name__ == "__main__":
    main()
