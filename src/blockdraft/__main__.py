"""Allow ``python -m blockdraft`` to launch the command line interface."""

from .app import main

if __name__ == "__main__":  # pragma: no cover - module execution guard
    raise SystemExit(main())
