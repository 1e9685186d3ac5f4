import sys

from lifeloop.main import main

sys.exit(main())
