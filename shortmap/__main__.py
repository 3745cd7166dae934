import sys

from shortmap.cli import main

sys.exit(main())
