"""Run the ssdface CLI from a source checkout: python main.py --source 0"""

import sys

from ssdface.cli import main

if __name__ == "__main__":
    sys.exit(main())
