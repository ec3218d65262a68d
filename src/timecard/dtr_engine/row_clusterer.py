"""Grouping of positioned word fragments into table rows."""

import logging
from itertools import groupby
from typing import Iterable, List

from .models import TableRow, WordFragment
from .utils import ValidationError

logger = logging.getLogger(__name__)

SIDES = ('left', 'right', 'full')


class RowClusterer:
    """Clusters word fragments into horizontal rows by vertical midpoint."""

    def __init__(self, tolerance: float = 12.0):
        """
        Initialize the clusterer.

        Args:
            tolerance: Maximum vertical distance (page units) between a fragment
                and the previous fragment of the same row
        """
        self.tolerance = tolerance

    def cluster(self, fragments: Iterable[WordFragment]) -> List[TableRow]:
        """
        Group fragments into rows, top to bottom and page by page.

        Fragments are swept in order of vertical midpoint. A fragment joins
        the current row when its midpoint is within ``tolerance`` of the
        last fragment added to that row, otherwise it starts a new row.

        Args:
            fragments: Word fragments, possibly from several pages

        Returns:
            List of TableRow with fragments sorted left to right
        """
        items = [f for f in fragments if f.text]
        if not items:
            return []

        rows: List[TableRow] = []
        items.sort(key=lambda f: f.page)
        for page, page_items in groupby(items, key=lambda f: f.page):
            rows.extend(self._cluster_page(list(page_items), page))

        logger.debug("Clustered %d fragments into %d rows", len(items), len(rows))
        return rows

    def _cluster_page(self, items: List[WordFragment], page: int) -> List[TableRow]:
        items = sorted(items, key=lambda f: f.y_mid)

        clusters: List[List[WordFragment]] = []
        for item in items:
            if clusters and abs(item.y_mid - clusters[-1][-1].y_mid) <= self.tolerance:
                clusters[-1].append(item)
            else:
                clusters.append([item])

        return [
            TableRow(fragments=tuple(sorted(c, key=lambda f: f.x0)), page=page)
            for c in clusters
        ]


def select_side(fragments: Iterable[WordFragment], side: str, page_width: float) -> List[WordFragment]:
    """
    Keep only the fragments on one half of the page.

    Args:
        fragments: Word fragments of one page
        side: "left", "right" or "full"
        page_width: Width of the page in the fragments' coordinate space

    Returns:
        Fragments whose horizontal midpoint falls on the requested half
    """
    if side not in SIDES:
        raise ValidationError(f"Unsupported side: {side!r}. Expected one of: {', '.join(SIDES)}")

    fragments = list(fragments)
    if side == 'full':
        return fragments

    mid_x = page_width / 2
    if side == 'left':
        return [f for f in fragments if f.x_mid < mid_x]
    return [f for f in fragments if f.x_mid >= mid_x]
