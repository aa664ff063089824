import sys

from shorts_compose.cli import main

if __name__ == "__main__":
    sys.exit(main())
