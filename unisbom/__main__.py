import sys

from unisbom.main import main

sys.exit(main())
