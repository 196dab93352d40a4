import sys

from hackjudge.cli import main

sys.exit(main())
