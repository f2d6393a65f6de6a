# Drawing person boxes, activity badges, and counts on frames

import cv2

from inactivity_monitor.data_types import TrackSnapshot, TrackedPerson

# BGR
ACTIVE_COLOR = (94, 197, 34)
INACTIVE_COLOR = (68, 68, 239)
BADGE_BG_COLOR = (42, 23, 15)
TEXT_COLOR = (255, 255, 255)
CORNER_SIZE = 8


def format_time(seconds: float) -> str:
    """
    Seconds -> "MM:SS" (minutes are not wrapped at 60).
    """
    seconds = max(0.0, float(seconds))
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins:02d}:{secs:02d}"


def badge_text(person: TrackedPerson) -> str:
    status = "Active" if person.is_active else "Inactive"
    return f"{status}: {format_time(person.streak_time)}"


def _draw_corners(frame, x1: int, y1: int, x2: int, y2: int, color) -> None:
    c = CORNER_SIZE
    for (px, py), (dx, dy) in (
        ((x1, y1), (1, 1)),
        ((x2, y1), (-1, 1)),
        ((x1, y2), (1, -1)),
        ((x2, y2), (-1, -1)),
    ):
        cv2.line(frame, (px, py), (px + dx * c, py), color, 2, cv2.LINE_AA)
        cv2.line(frame, (px, py), (px, py + dy * c), color, 2, cv2.LINE_AA)


def draw_person(frame, person: TrackedPerson) -> None:
    box = person.box
    x1 = int(box.x)
    y1 = int(box.y)
    x2 = int(box.x + box.width)
    y2 = int(box.y + box.height)
    color = ACTIVE_COLOR if person.is_active else INACTIVE_COLOR

    # Bounding box
    cv2.rectangle(frame, (x1, y1), (x2, y2), color, 1)
    _draw_corners(frame, x1, y1, x2, y2, color)

    # Badge centred above the box
    label = badge_text(person)
    (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.45, 1)
    pad = 5
    bw = tw + pad * 2
    bh = th + baseline + pad
    bx = x1 + ((x2 - x1) - bw) // 2
    by = max(0, y1 - bh - 5)

    cv2.rectangle(frame, (bx, by), (bx + bw, by + bh), BADGE_BG_COLOR, -1)
    cv2.rectangle(frame, (bx, by), (bx + bw, by + bh), color, 1)
    cv2.putText(
        frame,
        label,
        (bx + pad, by + th + pad // 2),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.45,
        color,
        1,
        cv2.LINE_AA,
    )


def draw_persons_and_counts(frame, snapshot: TrackSnapshot, muted: bool = False):
    """
    Draw every tracked person and the aggregate counts on the frame.

    frame: numpy array (BGR), drawn in place
    snapshot: latest TrackSnapshot
    muted: show a MUTED marker next to the counts
    """
    for person in snapshot:
        draw_person(frame, person)

    counts = snapshot.counts()
    header = f"Persons: {counts.total}  Active: {counts.active}  Inactive: {counts.inactive}"
    if muted:
        header += "  [MUTED]"

    cv2.putText(
        frame,
        header,
        (10, 25),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.6,
        TEXT_COLOR,
        2,
        cv2.LINE_AA,
    )

    return frame
