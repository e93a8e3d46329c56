# wabridge/services/providers/error_handling.py
"""
Channel error recovery for provider operations.

When a wrapped operation fails the channel is marked closed and a single
reconnection is attempted. The original exception is always re-raised;
the failed operation itself is never retried.
"""
import logging
from functools import wraps
from typing import Callable, Iterable, Tuple, Type

from wabridge.core.errors import ValidationError

log = logging.getLogger("wabridge.providers.recovery")


class RecoveryState:
    """
    Per-channel recovery bookkeeping.

    handling_error only stops a failing reconnection from recovering
    itself again. It is not a lock: concurrent operations on the same
    channel can each trigger their own recovery.
    """

    def __init__(self):
        self.handling_error = False


class ChannelRecovery:
    """Wraps provider operations with the recovery policy"""

    def __init__(
        self,
        state: RecoveryState,
        on_failure: Callable[[], None],
        reconnect: Callable[[], object],
        passthrough: Tuple[Type[BaseException], ...] = (ValidationError,),
    ):
        """
        Args:
            state: Recovery state of the channel
            on_failure: Marks the channel connection as closed
            reconnect: Re-registers the channel with the gateway (unwrapped)
            passthrough: Local errors raised before any gateway call; re-raised without recovery
        """
        self.state = state
        self.on_failure = on_failure
        self.reconnect = reconnect
        self.passthrough = passthrough

    def wrap(self, operation: Callable) -> Callable:
        @wraps(operation)
        def wrapped(*args, **kwargs):
            try:
                return operation(*args, **kwargs)
            except self.passthrough:
                raise
            except Exception as e:
                log.error(f"❌ {operation.__name__} failed: {e}")
                self.handle_failure()
                raise
        return wrapped

    def apply(self, target, method_names: Iterable[str]) -> None:
        """Replace the named bound methods of target with wrapped versions"""
        for name in method_names:
            setattr(target, name, self.wrap(getattr(target, name)))

    def handle_failure(self) -> None:
        try:
            self.on_failure()
        except Exception as e:
            log.error(f"❌ Failed to mark channel as closed: {e}")

        if self.state.handling_error:
            return

        self.state.handling_error = True
        try:
            log.info("🔄 Attempting to reconnect channel")
            self.reconnect()
            log.info("✅ Channel reconnection requested")
        except Exception as e:
            log.error(f"Failed to reconnect channel after error: {e}")
        finally:
            self.state.handling_error = False
