import sys

from weatherpush.cli import main

sys.exit(main())
