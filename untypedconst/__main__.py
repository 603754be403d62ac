"""Allow ``python -m untypedconst``."""

from untypedconst.main import main

raise SystemExit(main())
