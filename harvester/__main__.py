"""Allow ``python -m harvester``."""

import sys

from harvester.main import main

sys.exit(main())
