import logging
from collections import deque
from decimal import Decimal, ROUND_HALF_UP

from config import WINDOW_SIZE


log = logging.getLogger("avgcalc.store")

CENTS = Decimal("0.01")


def format_average(values):
    """Mean of ``values`` to two decimals, ties rounded away from zero.

    "0.00" when empty.
    """
    values = list(values)
    if not values:
        return "0.00"
    mean = Decimal(sum(values)) / len(values)
    return str(mean.quantize(CENTS, rounding=ROUND_HALF_UP))


class UniqueWindow:
    """Fixed-size FIFO of distinct numbers.

    A value already in the window is ignored: it is not re-added, does not
    move, and does not cause an eviction.
    """

    def __init__(self, size=WINDOW_SIZE):
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise ValueError(f"window size must be a positive integer, got {size!r}")
        self.window = deque(maxlen=size)

    def add(self, x):
        if x in self.window:
            return False
        if len(self.window) == self.window.maxlen:
            self.window.popleft()
        self.window.append(x)
        return True

    def clear(self):
        self.window.clear()

    def values(self):
        return list(self.window)

    def __len__(self):
        return len(self.window)


class WindowStore:
    """Per-category windows, all created empty up front."""

    def __init__(self, categories, size=WINDOW_SIZE):
        self.size = size
        self.windows = {category: UniqueWindow(size) for category in categories}

    def _get(self, category):
        try:
            return self.windows[category]
        except KeyError:
            raise ValueError(f"unknown category: {category!r}") from None

    def window(self, category):
        return self._get(category).values()

    def update(self, category, numbers):
        """Fold ``numbers`` into the window, in order.

        Returns ``(previous, current)`` as independent lists.
        """
        win = self._get(category)
        previous = win.values()
        accepted = 0
        for x in numbers:
            if win.add(x):
                accepted += 1
        current = win.values()
        log.debug("%s: %d accepted, window %s -> %s", category, accepted, previous, current)
        return previous, current

    def reset(self, category, values=()):
        win = self._get(category)
        win.clear()
        for x in values:
            win.add(x)
        return win.values()

    def average(self, category):
        return format_average(self._get(category).values())
