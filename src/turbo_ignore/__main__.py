import sys

from turbo_ignore.cli import main

sys.exit(main())
