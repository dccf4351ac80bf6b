from __future__ import annotations

from dataclasses import dataclass

from .constants import DEFAULT_RESTORE_AFTER, DEFAULT_TIMEOUT_S
from .session import Session


def shrink(window_size: int) -> int:
    return max(1, window_size // 2)


@dataclass(frozen=True, slots=True)
class AdaptationPolicy:
    """Static retransmission timer plus halve-on-timeout / step-restore window sizing.

    The timer never adapts to measured round trips. After a timeout the window is
    halved (never below 1); after ``restore_after`` consecutive in-order slides it
    jumps straight back to the negotiated size.
    """

    timeout_s: float = DEFAULT_TIMEOUT_S
    restore_after: int = DEFAULT_RESTORE_AFTER

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout_s}")
        if self.restore_after < 1:
            raise ValueError(f"restore_after must be >= 1, got {self.restore_after}")

    def on_timeout(self, session: Session) -> None:
        session.window_size = shrink(session.window_size)
        session.consecutive_clean_acks = 0

    def on_clean_ack(self, session: Session) -> bool:
        session.consecutive_clean_acks += 1
        if (
            session.consecutive_clean_acks == self.restore_after
            and session.window_size < session.initial_window_size
        ):
            session.window_size = session.initial_window_size
            session.consecutive_clean_acks = 0
            return True
        return False
