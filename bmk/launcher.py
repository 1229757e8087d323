"""Open bookmarks in the user's default browser without blocking the caller.

``webbrowser.open`` may spawn a process or talk to a running browser and
can hang; it is run on a daemon thread and bounded by a timeout. A hung
handler thread is abandoned, never joined, so neither the event loop nor
interpreter shutdown waits on it.
"""
import asyncio
import logging
import threading
import webbrowser
from typing import Any, Callable, Optional

from bmk.errors import LaunchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0  # seconds to wait for the browser handler


def _settle(future: asyncio.Future, result: Any, error: Optional[BaseException]) -> None:
    # Already cancelled when the caller timed out.
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def _run_detached(opener: Callable[[str], bool], url: str) -> asyncio.Future:
    """Call ``opener(url)`` on a daemon thread; the outcome lands in a future."""
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def worker() -> None:
        result, error = None, None
        try:
            result = opener(url)
        except Exception as e:
            error = e
        try:
            loop.call_soon_threadsafe(_settle, future, result, error)
        except RuntimeError:
            # The loop is closed; nobody is waiting for this launch anymore.
            logger.debug("Dropped late browser result for %s", url)

    threading.Thread(target=worker, name="bmk-launch", daemon=True).start()
    return future


class BrowserLauncher:
    """Async wrapper around a blocking ``open(url) -> bool`` function."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        opener: Optional[Callable[[str], bool]] = None,
    ):
        self.timeout = timeout
        self._opener = opener or webbrowser.open

    async def open(self, url: str) -> None:
        """Open ``url``.

        Raises:
            LaunchError: If no handler accepted the URL, the handler raised,
                or it did not return within the timeout
        """
        logger.info("Opening %s", url)
        try:
            ok = await asyncio.wait_for(_run_detached(self._opener, url), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Browser did not respond within %ss for %s", self.timeout, url)
            raise LaunchError(f"Browser did not respond within {self.timeout}s")
        except (webbrowser.Error, OSError) as e:
            logger.warning("Failed to open %s: %s", url, e)
            raise LaunchError(str(e)) from e
        except Exception as e:
            logger.exception("Browser handler crashed for %s", url)
            raise LaunchError(f"Browser handler failed: {e}") from e

        if not ok:
            logger.warning("No browser handler accepted %s", url)
            raise LaunchError("No browser available to open the URL")

    def open_sync(self, url: str) -> None:
        """Blocking variant for one-shot command line use."""
        asyncio.run(self.open(url))
