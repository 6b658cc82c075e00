"""Allow running as: python -m hygro"""

import sys

from hygro.cli import main

sys.exit(main())
