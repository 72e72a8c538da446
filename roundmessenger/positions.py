"""Adjudicator position labels derived from the combined judge list index."""

CHAIR = "the chair"
PANELLIST = "a panellist"
TRAINEE = "a trainee"


def position_label(index: int, panellist_count: int) -> str:
    """Label a judge by its index in [chair, *panellists, *trainees].

    Anything past the panellist block is a trainee, so with no panellists
    index 1 is already a trainee.
    """
    if index == 0:
        return CHAIR
    if index > panellist_count:
        return TRAINEE
    return PANELLIST
