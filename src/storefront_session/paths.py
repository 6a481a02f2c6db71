"""Path prefix matching shared by the route guard and the API client."""

from collections.abc import Iterable


def path_matches(path: str, prefixes: Iterable[str]) -> bool:
    """Check whether ``path`` falls under any of ``prefixes``.

    A prefix matches the path itself and anything below it, with a proper
    boundary so ``/orders`` covers ``/orders/42`` but not ``/ordersx``.
    """
    for prefix in prefixes:
        prefix = prefix.rstrip("/") or "/"
        if prefix == "/":
            return True
        if path == prefix or path.startswith((prefix + "/", prefix + "?")):
            return True
    return False
