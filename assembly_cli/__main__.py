"""Package entry point for ``python -m assembly_cli``."""

from assembly_cli.cli import main

if __name__ == "__main__":
    main()
