import sys

from pawnmaster.main import main

sys.exit(main())
