import sys

from encodly.cli import main

sys.exit(main())
