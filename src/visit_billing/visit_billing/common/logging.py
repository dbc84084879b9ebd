from __future__ import annotations

import logging
import sys

# Parent of every module logger in the package (``<package>.common.logging`` -> ``<package>``).
PACKAGE_LOGGER = __name__.rsplit(".", 2)[0]
HANDLER_NAME = "visit_billing.console"

_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def configure_logging(*, debug: bool = False) -> logging.Logger:
    """Install a console handler on the package logger (idempotent)."""
    root = logging.getLogger(PACKAGE_LOGGER)
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    return root
