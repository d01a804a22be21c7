from typing import Iterable, Tuple

from dbimporter.errors import EmptyInput


def select_latest(pairs: Iterable[Tuple[str, int]]) -> Tuple[str, int]:
    """Return the ``(key, timestamp)`` pair with the newest timestamp.

    On equal timestamps the pair seen first wins.
    """
    latest = None
    for key, timestamp in pairs:
        # strict '>' keeps the earliest of equal maxima
        if latest is None or timestamp > latest[1]:
            latest = (key, timestamp)
    if latest is None:
        raise EmptyInput()
    return latest
