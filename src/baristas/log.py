import logging
import sys

LOG_FORMAT = "%(asctime)s [%(threadName)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """
    Attach one stream handler to the ``baristas`` logger.

    Library modules never configure logging themselves; this is for the
    command line entry point and ad-hoc scripts. Calling it again replaces
    the handler instead of stacking a second one.
    """
    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger("baristas")
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_baristas", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    handler._baristas = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    return root
