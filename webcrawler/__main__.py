import sys

from webcrawler.main import main


sys.exit(main())
