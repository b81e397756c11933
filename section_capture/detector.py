"""
Section Detection Module

Partitions a rendered page into visually distinct, full-width sections using
post-layout DOM geometry.

The geometry is read inside the browser with a single evaluation that returns
a snapshot of the element tree (computed visibility and bounding rectangles).
The heuristic then runs over that snapshot:

1. Candidates are visible, non-fixed children larger than the minimum size.
2. Single-candidate wrappers are drilled through, starting at ``<body>``.
3. With two or fewer candidates, the main content landmark is tried as well
   and the larger candidate set wins.
4. A candidate taller than 80% of all candidates combined is a mega-container
   and is replaced by its own candidates; its peers (e.g. a footer) stay.
5. Candidates are placed in document coordinates and sorted top to bottom.

The snapshot must be taken after the page has been scrolled to its full
extent, since lazy-loaded content changes both layout and visibility.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence

from config import Config

SNAPSHOT_SCRIPT = """
({ landmarkSelectors, maxDepth, minWidth, minHeight }) => {
    const describe = (el, depth) => {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        const node = {
            tag: el.tagName.toLowerCase(),
            display: style.display,
            visibility: style.visibility,
            opacity: style.opacity,
            position: style.position,
            top: rect.top,
            left: rect.left,
            width: rect.width,
            height: rect.height,
            children: []
        };
        // Only qualifying elements can become containers, so only they are expanded
        const expandable = depth === 0 || (
            style.display !== 'none' &&
            style.visibility !== 'hidden' &&
            style.opacity !== '0' &&
            style.position !== 'fixed' &&
            rect.height > minHeight &&
            rect.width > minWidth
        );
        if (expandable && depth < maxDepth) {
            node.children = Array.from(el.children).map(child => describe(child, depth + 1));
        }
        return node;
    };

    let landmark = null;
    for (const selector of landmarkSelectors) {
        landmark = document.querySelector(selector);
        if (landmark) break;
    }

    return {
        scrollY: window.scrollY,
        viewportWidth: window.innerWidth,
        body: document.body ? describe(document.body, 0) : null,
        landmark: landmark ? describe(landmark, 0) : null
    };
}
"""

DEFAULT_LANDMARK_SELECTORS = ["main", "[role='main']"]


@dataclass(frozen=True)
class DetectionThresholds:
    """Minimum section size and the mega-container height ratio."""
    min_height: float = 50
    min_width: float = 100
    mega_ratio: float = 0.8


@dataclass(frozen=True)
class Section:
    """A detected section in absolute document coordinates."""
    top: float
    left: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        data['bottom'] = self.bottom
        return data


def _opacity(node: Dict[str, Any]) -> float:
    try:
        return float(node.get('opacity', 1))
    except (TypeError, ValueError):
        return 1.0


def is_potential_section(node: Optional[Dict[str, Any]], thresholds: DetectionThresholds) -> bool:
    """A section must be visible, not fixed, and have a meaningful size."""
    if not node:
        return False
    if (node.get('display') == 'none' or node.get('visibility') == 'hidden'
            or _opacity(node) == 0 or node.get('position') == 'fixed'):
        return False
    return node.get('height', 0) > thresholds.min_height and node.get('width', 0) > thresholds.min_width


def get_candidates(container: Dict[str, Any], thresholds: DetectionThresholds) -> List[Dict[str, Any]]:
    """Qualifying direct children of a container, in document order."""
    return [child for child in container.get('children', []) if is_potential_section(child, thresholds)]


def drill_down(root: Optional[Dict[str, Any]], thresholds: DetectionThresholds) -> List[Dict[str, Any]]:
    """Descend through single-candidate wrappers and return the first level with zero or several candidates."""
    if root is None:
        return []

    candidates = get_candidates(root, thresholds)
    while len(candidates) == 1:
        candidates = get_candidates(candidates[0], thresholds)
    return candidates


def collapse_mega_container(candidates: List[Dict[str, Any]],
                            thresholds: DetectionThresholds) -> List[Dict[str, Any]]:
    """
    Replace a candidate that dominates the combined height with its own candidates.

    Args:
        candidates: Candidate nodes found at one level
        thresholds: Detection thresholds (``mega_ratio`` is the dominance ratio)

    Returns:
        The candidates with the mega-container, if any, expanded in place
    """
    total_height = sum(node.get('height', 0) for node in candidates)
    for position, node in enumerate(candidates):
        if node.get('height', 0) > total_height * thresholds.mega_ratio:
            inner = get_candidates(node, thresholds)
            return candidates[:position] + inner + candidates[position + 1:]
    return list(candidates)


def detect_sections(snapshot: Dict[str, Any], capture_width: Optional[float] = None,
                    thresholds: Optional[DetectionThresholds] = None) -> List[Section]:
    """
    Run the section heuristic over a DOM geometry snapshot.

    Args:
        snapshot: Result of ``SNAPSHOT_SCRIPT``
        capture_width: Width every section spans; defaults to the snapshot's viewport width,
            then to the configured viewport width
        thresholds: Detection thresholds, defaults to 50px/100px/0.8

    Returns:
        Sections sorted by top offset, strictly ascending. Empty if nothing qualifies.
    """
    thresholds = thresholds or DetectionThresholds()
    if capture_width is None:
        capture_width = snapshot.get('viewportWidth') or Config.VIEWPORT_WIDTH
    scroll_y = snapshot.get('scrollY', 0) or 0

    candidates = drill_down(snapshot.get('body'), thresholds)

    # Page chrome next to the content can hide the real sections one level down
    landmark = snapshot.get('landmark')
    if len(candidates) <= 2 and landmark is not None:
        landmark_candidates = drill_down(landmark, thresholds)
        if len(landmark_candidates) > len(candidates):
            candidates = landmark_candidates

    candidates = collapse_mega_container(candidates, thresholds)
    candidates = [node for node in candidates if node.get('height', 0) > thresholds.min_height]

    placed = sorted(
        ((node['top'] + scroll_y, node['height']) for node in candidates),
        key=lambda item: (item[0], -item[1])
    )

    sections: List[Section] = []
    for top, height in placed:
        # Full-width sections sharing a top are prefixes of the tallest one
        if sections and sections[-1].top == top:
            continue
        sections.append(Section(top=top, left=0, width=capture_width, height=height))
    return sections


async def take_snapshot(page, landmark_selectors: Sequence[str] = DEFAULT_LANDMARK_SELECTORS,
                        max_depth: int = 40,
                        thresholds: Optional[DetectionThresholds] = None) -> Dict[str, Any]:
    """Read the DOM geometry snapshot from the live page."""
    thresholds = thresholds or DetectionThresholds()
    return await page.evaluate(SNAPSHOT_SCRIPT, {
        'landmarkSelectors': list(landmark_selectors),
        'maxDepth': max_depth,
        'minWidth': thresholds.min_width,
        'minHeight': thresholds.min_height,
    })


async def measure_sections(page, capture_width: Optional[float] = None,
                           thresholds: Optional[DetectionThresholds] = None,
                           landmark_selectors: Sequence[str] = DEFAULT_LANDMARK_SELECTORS,
                           max_depth: int = 40) -> List[Section]:
    """Snapshot the page and detect its sections."""
    print("  > Analyzing layout...")
    snapshot = await take_snapshot(page, landmark_selectors, max_depth, thresholds)
    return detect_sections(snapshot, capture_width, thresholds)
