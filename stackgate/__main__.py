import sys

from stackgate.cli import main

sys.exit(main())
