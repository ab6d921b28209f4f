from datetime import time

DAY_START = time(0, 0)
DAY_END = time(23, 59)


def free_windows(booked, day_start=DAY_START, day_end=DAY_END):
    """Return the gaps between booked (start, end) windows as (start, end) pairs.

    `booked` need not be sorted and may overlap.
    """
    if not booked:
        return [(day_start, day_end)]

    blocked = sorted(booked)
    merged = []
    start, end = blocked[0]

    for s, e in blocked[1:]:
        if s <= end:
            end = max(end, e)
        else:
            merged.append((start, end))
            start, end = s, e

    merged.append((start, end))

    available = []
    last = day_start

    for s, e in merged:
        if s > last:
            available.append((last, s))
        last = max(last, e)

    if last < day_end:
        available.append((last, day_end))

    return available
