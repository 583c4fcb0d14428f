import sys

from vat_extraction.main import main

sys.exit(main())
