#
# apsc: an active/passive sidecar for kubernetes pods
# Copyright (C) 2026  The apsc authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>
#

import logging
import signal
import threading
import typing

_logger = logging.getLogger(__name__)

# SIGKILL can never be caught. It is listed so that the attempt is logged,
# but only SIGTERM and SIGINT will actually demote the pod gracefully.
DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGINT, signal.SIGKILL)


class SignalWatcher:
    """Records termination signals while active as a context manager.

    The handler only stores the signal number. Python runs signal handlers
    on the main thread in between bytecodes, possibly while that thread
    holds a lock, so the actual shutdown work must happen in regular code
    after wait returns.
    """

    def __init__(
        self,
        signals: typing.Iterable[int] = DEFAULT_SIGNALS,
        interval: float = 0.5,
    ) -> None:
        self.signals = tuple(signals)
        self.interval = interval
        self.received: typing.Optional[int] = None
        self._previous: dict[int, typing.Any] = {}

    def _handler(self, signum: int, frame: typing.Any) -> None:
        if self.received is None:
            self.received = signum

    def __enter__(self) -> "SignalWatcher":
        for sig in self.signals:
            try:
                self._previous[sig] = signal.signal(sig, self._handler)
            except OSError as err:
                _logger.debug("can not intercept signal %s: %s", sig, err)
        return self

    def __exit__(
        self,
        exc_type: typing.Optional[typing.Type[BaseException]],
        exc_val: typing.Optional[BaseException],
        exc_tb: typing.Any,
    ) -> bool:
        for sig, handler in self._previous.items():
            if handler is None:
                handler = signal.SIG_DFL
            signal.signal(sig, handler)
        self._previous = {}
        return False

    def wait(self, thread: threading.Thread) -> typing.Optional[int]:
        """Block until the thread exits or a signal is received.
        Returns the signal number or None if the thread finished first.
        """
        while thread.is_alive() and self.received is None:
            thread.join(self.interval)
        if self.received is not None:
            _logger.info(
                "shutdown after signal %s", signal.Signals(self.received).name
            )
        return self.received
