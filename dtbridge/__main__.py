"""Allow ``python -m dtbridge``."""

import sys

from .cli import main


sys.exit(main())
