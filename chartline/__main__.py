from __future__ import annotations

from chartline.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
