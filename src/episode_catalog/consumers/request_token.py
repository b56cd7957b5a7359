"""
Request tokens

Each read a consumer issues gets the next token; a response is applied
only if no newer read was issued in the meantime.
"""


class RequestGate:
    """Monotonic request counter for one consumer"""

    def __init__(self):
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest
