"""Allow running testscope as a module: python -m testscope."""

from testscope.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
