from __future__ import annotations

from dataclasses import dataclass

from .constants import FIRST_SEQ, MAX_SEQ


@dataclass(slots=True)
class Session:
    """Go-Back-N sender state for one peer.

    Invariants while sending:
    ``FIRST_SEQ <= base <= next_sequence <= total_units + 1`` and
    ``next_sequence - base <= window_size`` with ``window_size >= 1``.
    """

    window_size: int
    total_units: int
    initial_window_size: int = 0
    base: int = FIRST_SEQ
    next_sequence: int = FIRST_SEQ
    consecutive_clean_acks: int = 0

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ValueError(f"window size must be >= 1, got {self.window_size}")
        if not 0 <= self.total_units <= MAX_SEQ:
            raise ValueError(f"total units must be in 0..{MAX_SEQ}, got {self.total_units}")
        if not self.initial_window_size:
            self.initial_window_size = self.window_size

    @property
    def complete(self) -> bool:
        return self.base > self.total_units

    @property
    def in_flight(self) -> int:
        return self.next_sequence - self.base

    def can_send(self) -> bool:
        return self.next_sequence < self.base + self.window_size and self.next_sequence <= self.total_units

    def take_next(self) -> int:
        if not self.can_send():
            raise RuntimeError(f"window full: base={self.base} next={self.next_sequence} window={self.window_size}")
        seq = self.next_sequence
        self.next_sequence += 1
        return seq

    def slide(self, ack: int) -> bool:
        # Only an ACK for exactly ``base`` moves the window; ACKs further ahead are not cumulative.
        if ack != self.base or self.base >= self.next_sequence:
            return False
        self.base += 1
        return True

    def rewind(self) -> int:
        """Drop everything in flight back to ``base``; returns how many units will be resent."""
        resend = self.in_flight
        self.next_sequence = self.base
        return resend
