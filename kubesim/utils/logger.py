# logger_setup.py
import logging
import os
from typing import Optional

_LOGGER_INITIALIZED = False


def init_logger(output_dir: Optional[str] = None, verbose: bool = False):
    """Initialize global logger configuration once."""

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    log_level = logging.DEBUG if verbose else logging.WARNING

    parent_name = "kubesim"
    parent = logging.getLogger(parent_name)

    # Keep the root logger quiet, simulated command output goes to stdout
    logging.getLogger().setLevel(logging.CRITICAL)

    if parent.handlers:
        _LOGGER_INITIALIZED = True
        return

    # Handlers live on the parent, children propagate to it
    parent.setLevel(logging.DEBUG)
    parent.propagate = False

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    parent.addHandler(console)

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        file_path = os.path.join(output_dir, "run.log")
        fh = logging.FileHandler(file_path)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        parent.addHandler(fh)

    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger under the 'kubesim' namespace so it inherits parent's handlers.
    Example: get_logger(__name__) -> logger name "kubesim.simulator.store"
    """
    base = "kubesim"
    if name and not name.startswith(base):
        fullname = f"{base}.{name}"
    else:
        fullname = name or base
    return logging.getLogger(fullname)

