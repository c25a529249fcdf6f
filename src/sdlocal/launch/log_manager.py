"""
Log management for the launch module.

This module configures process-wide logging and forwards the output of
container runtime invocations into the logger when running verbosely.
"""

import logging
import sys
import threading
from typing import IO, Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(verbose: bool = False, level: str = "INFO") -> None:
    """
    Set up root logging the same way for every entry point.

    Args:
        verbose: Force DEBUG level regardless of *level*
        level: Level name, usually LauncherSettings.log_level
    """
    effective_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=effective_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )


def _pump(stream: IO[bytes], target: logging.Logger, level: int) -> None:
    try:
        for raw_line in iter(stream.readline, b""):
            line = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
            if line:
                target.log(level, line)
    except (OSError, ValueError) as e:
        # Stream closed underneath us, nothing left to forward
        logger.debug(f"Output forwarding stopped: {e}")
    finally:
        try:
            stream.close()
        except OSError:
            pass


def forward_stream(
    stream: Optional[IO[bytes]],
    target: Optional[logging.Logger] = None,
    level: int = logging.INFO,
) -> Optional[threading.Thread]:
    """
    Forward every line of *stream* to *target* from a daemon thread.

    Returns:
        The started thread, or None if there is no stream to forward
    """
    if stream is None:
        return None
    thread = threading.Thread(
        target=_pump,
        args=(stream, target or logger, level),
        name="sdlocal-output",
        daemon=True,
    )
    thread.start()
    return thread
