"""Allow ``python -m ods_pipeline``."""

import sys

from ods_pipeline.run import main

sys.exit(main())
