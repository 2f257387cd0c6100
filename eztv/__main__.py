import sys

from eztv.cli import main

sys.exit(main())
