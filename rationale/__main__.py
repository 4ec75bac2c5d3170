"""Allow `python -m rationale`."""

import sys

from .cli import main

sys.exit(main())
