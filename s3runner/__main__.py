import sys

from s3runner.main import main

sys.exit(main())
