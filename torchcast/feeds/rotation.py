"""Round-robin selection over the configured feed and site lists."""

from .models import RotationSelection, RotationState


def select_rotation(
    feeds: list[str],
    sites: list[str],
    state: RotationState,
    feeds_per_run: int,
) -> RotationSelection:
    """Pick up to ``feeds_per_run`` feeds from the cursor, wrapping, plus one site.

    The feed cursor advances by the number of feeds picked and the site cursor by
    one, both modulo their list length. Empty lists reset their cursor to 0.
    """
    count = min(max(feeds_per_run, 0), len(feeds))
    start = state.feed_cursor % len(feeds) if feeds else 0
    selected = [feeds[(start + i) % len(feeds)] for i in range(count)]
    feed_cursor = (start + count) % max(1, len(feeds))

    site = None
    site_cursor = 0
    if sites:
        site_index = state.site_cursor % len(sites)
        site = sites[site_index]
        site_cursor = (site_index + 1) % len(sites)

    return RotationSelection(
        feeds=selected,
        site=site,
        next_state=RotationState(feed_cursor=feed_cursor, site_cursor=site_cursor),
    )
