"""Entry point for tasktray when run as a module.

This allows the package to be run with: python -m tasktray
"""

import sys

from tasktray.cli import main

if __name__ == "__main__":
    sys.exit(main())
