from typing import Tuple


def split_name(name: str) -> Tuple[str, str]:
    """
    Split a display name at its last space.

    The first name keeps the separating space ("Jane Q " / "Public").
    A name without spaces is all last name.
    """
    last_space = name.rfind(" ")
    if last_space == -1:
        return "", name
    return name[:last_space + 1], name[last_space + 1:]
