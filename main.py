"""
refload – Main entry point.

Loads a reference file from the command line; see actions/load_reference_file.py
for the options.
"""

import sys

from actions.load_reference_file import main


if __name__ == "__main__":
    sys.exit(main())
