"""Allows `python -m modbridge`."""

from modbridge.cli.main import main

raise SystemExit(main())
