import sys

from watchrun.main import main

sys.exit(main())
