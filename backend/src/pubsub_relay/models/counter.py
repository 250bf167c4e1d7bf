class IdCounter:
    ''' Monotonic message id source shared by sendMessage and the message generator.

    Starts at 1, never reused, never reset. allocate() does not suspend, so
    callers on the event loop never observe the same value twice.
    '''

    def __init__(self, start: int = 1):
        self._next = start

    def allocate(self) -> int:
        value = self._next
        self._next += 1
        return value

    @property
    def current(self) -> int:
        """The id the next allocate() will return."""
        return self._next
