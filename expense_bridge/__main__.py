"""Allow `python -m expense_bridge <config.toml>`."""

from expense_bridge.main import main

raise SystemExit(main())
