"""Go-Back-N ARQ server over UDP.

One process, one peer: a three-way handshake that also carries the window size
and unit count, then a Go-Back-N transfer with a static retransmission timer and
an adaptive window, closed by a reset unit.

Layout mirrors the protocol layers:
- ``packet``: the fixed 16-byte unit and its codec
- ``handshake`` / ``sender`` / ``teardown``: the phases of a session
- ``session`` + ``policy``: window state and how timeouts reshape it
- ``net``: the UDP transport the phases talk through
"""

__all__ = []
