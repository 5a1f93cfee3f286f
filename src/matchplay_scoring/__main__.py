"""Allow ``python -m matchplay_scoring``."""

import sys

from .cli import main

sys.exit(main())
