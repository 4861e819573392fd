"""Allow ``python -m formlens``."""

import sys

from .cli import main

sys.exit(main())
