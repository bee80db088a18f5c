# spatial_partition.py
import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

from config import config
from physics_utils import distance_squared


class Rectangle:
    def __init__(self, x, y, w, h):
        self.x = x  # Center x
        self.y = y  # Center y
        self.w = w  # Half-width
        self.h = h  # Half-height

    @classmethod
    def from_bounds(cls, min_x: float, min_y: float, width: float, height: float) -> 'Rectangle':
        """Builds a rectangle from its lower corner and full size."""
        return cls(min_x + width / 2, min_y + height / 2, width / 2, height / 2)

    def contains_point(self, point) -> bool:
        """Check if a point lies within this rectangle (half-open on the max edges)."""
        px, py = point[0], point[1]
        return (self.x - self.w <= px < self.x + self.w and
                self.y - self.h <= py < self.y + self.h)

    def contains(self, obj) -> bool:
        """Check if an object (based on its position) is within this rectangle."""
        return self.contains_point(obj.position)

    def intersects(self, other_rect: 'Rectangle') -> bool:
        """Check if this rectangle intersects with another rectangle."""
        # No intersection if one rectangle is to the left of the other
        if self.x + self.w < other_rect.x - other_rect.w or \
           other_rect.x + other_rect.w < self.x - self.w:
            return False
        # No intersection if one rectangle is above the other
        if self.y + self.h < other_rect.y - other_rect.h or \
           other_rect.y + other_rect.h < self.y - self.h:
            return False
        return True

    def intersects_circle(self, center, radius: float) -> bool:
        """Check if a circle touches this rectangle, via the closest point of the rectangle to its center."""
        closest_x = max(self.x - self.w, min(center[0], self.x + self.w))
        closest_y = max(self.y - self.h, min(center[1], self.y + self.h))
        dx = center[0] - closest_x
        dy = center[1] - closest_y
        return dx * dx + dy * dy <= radius * radius

    def __repr__(self) -> str:
        return f"Rectangle(x={self.x}, y={self.y}, w={self.w}, h={self.h})"


@dataclass
class Leaf:
    """Node state holding objects directly."""
    items: list = field(default_factory=list)


@dataclass
class Internal:
    """Node state delegating to four children: northwest, northeast, southwest, southeast."""
    children: Tuple['Quadtree', 'Quadtree', 'Quadtree', 'Quadtree']


class Quadtree:
    """
    Point quadtree over objects exposing `position` (x, y) and `radius`.

    A node is either a `Leaf` holding up to `capacity` objects or an `Internal`
    node holding none and delegating to four quadrant children. The change
    from leaf to internal happens once, on the insertion that would exceed
    capacity, and is never undone. Leaves at `max_depth` keep growing instead
    of subdividing, so coincident positions cannot recurse forever.
    """

    def __init__(self, boundary: Rectangle, capacity: int, max_depth: int, depth: int = 0):
        self.boundary = boundary
        self.capacity = capacity  # Max objects before subdividing
        self.max_depth = max_depth
        self.depth = depth
        self.node: Union[Leaf, Internal] = Leaf()

    @property
    def is_leaf(self) -> bool:
        return isinstance(self.node, Leaf)

    def _subdivide(self):
        x = self.boundary.x
        y = self.boundary.y
        hw = self.boundary.w / 2  # half-width of children
        hh = self.boundary.h / 2  # half-height of children

        children = (
            Quadtree(Rectangle(x - hw, y - hh, hw, hh), self.capacity, self.max_depth, self.depth + 1),
            Quadtree(Rectangle(x + hw, y - hh, hw, hh), self.capacity, self.max_depth, self.depth + 1),
            Quadtree(Rectangle(x - hw, y + hh, hw, hh), self.capacity, self.max_depth, self.depth + 1),
            Quadtree(Rectangle(x + hw, y + hh, hw, hh), self.capacity, self.max_depth, self.depth + 1),
        )
        held = self.node.items
        self.node = Internal(children)
        for obj in held:
            self._child_for(obj.position)._place(obj)

    def _child_for(self, point) -> 'Quadtree':
        # Compare against the center rather than each child's bounds so rounding
        # in the child rectangles can never drop an object.
        east = point[0] >= self.boundary.x
        south = point[1] >= self.boundary.y
        return self.node.children[(2 if south else 0) + (1 if east else 0)]

    def _place(self, obj):
        node = self.node
        if isinstance(node, Leaf):
            if len(node.items) < self.capacity or self.depth >= self.max_depth:
                node.items.append(obj)
                return
            self._subdivide()
        self._child_for(obj.position)._place(obj)

    def insert(self, obj) -> bool:
        """
        Inserts an object by its position.

        Returns:
            bool: False if the position lies outside this node's boundary, True otherwise.
        """
        if not self.boundary.contains(obj):
            return False
        self._place(obj)
        return True

    def query_circle(self, center, radius: float, found: Optional[list] = None) -> list:
        """
        Collects objects whose position lies within `radius` of `center`.

        Nodes whose rectangle does not touch the circle are pruned. Objects in
        surviving leaves are then kept only if their exact distance is within radius.
        """
        if found is None:
            found = []
        if not self.boundary.intersects_circle(center, radius):
            return found

        node = self.node
        if isinstance(node, Internal):
            for child in node.children:
                child.query_circle(center, radius, found)
        else:
            radius_sq = radius * radius
            for obj in node.items:
                if distance_squared(obj.position, center) <= radius_sq:
                    found.append(obj)
        return found

    def query(self, range_rect: Rectangle, found: Optional[list] = None) -> list:
        """Collects objects whose position lies inside `range_rect`."""
        if found is None:
            found = []
        if not self.boundary.intersects(range_rect):
            return found  # No intersection, no need to check further

        node = self.node
        if isinstance(node, Internal):
            for child in node.children:
                child.query(range_rect, found)
        else:
            for obj in node.items:
                if range_rect.contains(obj):
                    found.append(obj)
        return found

    def count(self) -> int:
        """Returns the total number of objects in this quadtree and its children."""
        node = self.node
        if isinstance(node, Internal):
            return sum(child.count() for child in node.children)
        return len(node.items)

    def depth_reached(self) -> int:
        node = self.node
        if isinstance(node, Internal):
            return max(child.depth_reached() for child in node.children)
        return self.depth


class SpatialIndex:
    """
    Nearest-body lookup rebuilt from scratch every simulation step.

    Bodies move continuously, so the tree is discarded and rebuilt from current
    positions instead of being updated in place. Queries between rebuilds see
    the positions as of the last `rebuild`.
    """

    def __init__(self, capacity: Optional[int] = None, max_depth: Optional[int] = None):
        self.capacity = capacity if capacity is not None else config.SpatialPartitioning.QUADTREE_CAPACITY
        self.max_depth = max_depth if max_depth is not None else config.SpatialPartitioning.QUADTREE_MAX_DEPTH
        self.quadtree: Optional[Quadtree] = None

    def rebuild(self, objects: Iterable, bounds: Rectangle) -> int:
        """
        Replaces the index with a new tree over `bounds` holding `objects`.

        Returns:
            int: Number of objects inserted. Objects outside `bounds` are skipped
                 and logged, since the caller chose bounds that should hold them all.
        """
        self.quadtree = Quadtree(bounds, self.capacity, self.max_depth)
        inserted = 0
        for obj in objects:
            if self.quadtree.insert(obj):
                inserted += 1
            else:
                logging.warning(f"Spatial index rejected object at {tuple(obj.position)}: outside bounds {bounds}.")
        if config.Debug.SPATIAL_INDEX:
            logging.debug(f"Spatial index rebuilt with {inserted} objects, depth {self.quadtree.depth_reached()}.")
        return inserted

    def __len__(self) -> int:
        return self.quadtree.count() if self.quadtree is not None else 0

    def query_circle(self, center, radius: float) -> List:
        if self.quadtree is None:
            return []
        return self.quadtree.query_circle(center, radius)

    def query_nearest(self, point, tolerance: float, margin: Optional[float] = None):
        """
        Picks the object under `point`.

        1. Collect candidates within `tolerance + margin` of the point.
        2. Keep those whose hit circle, `radius + tolerance`, contains the point.
        3. Return the one whose center is closest, or None.

        Args:
            point: (x, y) in world coordinates.
            tolerance: Extra hit radius around every object.
            margin: Extra search radius so large objects are still candidates.
                    Defaults to `config.Selection.QUERY_MARGIN`.
        """
        if margin is None:
            margin = config.Selection.QUERY_MARGIN

        closest = None
        closest_dist = math.inf
        for candidate in self.query_circle(point, tolerance + margin):
            dist = math.sqrt(distance_squared(point, candidate.position))
            if dist <= candidate.radius + tolerance and dist < closest_dist:
                closest = candidate
                closest_dist = dist
        return closest
