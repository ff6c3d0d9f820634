"""Coalescing of bursty outbound callbacks, driven by explicit timestamps."""


class _Batch:
    def __init__(self, callback):
        self.callback = callback
        self.pending = {}
        self.armed = False

    def add(self, pieces):
        for p in pieces:
            self.pending[p.id] = p
        self.armed = True

    def flush(self):
        if not self.armed:
            return False
        batch = list(self.pending.values())
        self.cancel()
        if self.callback is not None:
            self.callback(batch)
        return True

    def cancel(self):
        self.pending = {}
        self.armed = False


class Debouncer(_Batch):
    """Fires once ``delay`` seconds after the last trigger."""

    def __init__(self, delay, callback):
        super().__init__(callback)
        self.delay = delay
        self.last_trigger = None

    def trigger(self, now, pieces=()):
        self.add(pieces)
        self.last_trigger = now

    def poll(self, now):
        if self.last_trigger is None or now - self.last_trigger < self.delay:
            return False
        self.last_trigger = None
        return self.flush()


class Throttle(_Batch):
    """Fires at most once per ``interval``; later triggers wait for the next slot."""

    def __init__(self, interval, callback):
        super().__init__(callback)
        self.interval = interval
        self.last_fire = None

    def trigger(self, now, pieces=()):
        self.add(pieces)
        self.poll(now)

    def poll(self, now):
        if not self.armed:
            return False
        if self.last_fire is not None and now - self.last_fire < self.interval:
            return False
        self.last_fire = now
        return self.flush()
