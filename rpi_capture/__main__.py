"""Allow ``python -m rpi_capture`` (and use as ``init=``) to start the appliance."""

from __future__ import annotations

from .app.master import main

if __name__ == "__main__":
    main()
