import sys

from survey_service.cli import main

sys.exit(main())
