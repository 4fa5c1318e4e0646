"""Entry point for running the example client via python -m age_signals"""

import sys

from age_signals.runtime import main

if __name__ == "__main__":
    sys.exit(main())
