"""Allow ``python -m vmkeeper``."""

from vmkeeper.cli import main

raise SystemExit(main())
