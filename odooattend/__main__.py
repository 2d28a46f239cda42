import sys

from odooattend.cli import main

sys.exit(main())
