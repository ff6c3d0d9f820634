"""Tunable constants for cutting and playing a puzzle."""

from dataclasses import dataclass

# --- Cutting ---
MIN_GRID = 2
TAB_SIZE_RATIO = 0.2
NECK_WIDTH_RANGE = (0.4, 0.6)
HEAD_WIDTH_RANGE = (0.7, 1.0)
HEAD_HEIGHT_RANGE = (0.8, 1.1)
NECK_DEPTH_RANGE = (0.1, 0.2)
BEZIER_STEPS = 12
SCATTER_JITTER = 0.4  # fraction of the tab size
OUTLINE_COLOR = (20, 20, 20, 200)

# --- Interaction ---
SNAP_DISTANCE = 30  # world pixels
HOLD_DELAY = 0.2  # seconds
MOVE_TOLERANCE = 10  # screen pixels before a hold turns into a pan
EDGE_PAN_THRESHOLD = 60
EDGE_PAN_SPEED = 5
MIN_SCALE = 0.1
MAX_SCALE = 5.0
MAX_OFFSET = 100000
WHEEL_ZOOM_STEP = 1.1

# --- Outbound callbacks ---
MOVE_END_DEBOUNCE = 0.3
DRAG_BROADCAST_INTERVAL = 0.1
SELECTION_TIMEOUT = 30.0

# --- Drawing ---
FPS = 60
BACKGROUND_COLOR = (240, 240, 240)
HIGHLIGHT_COLOR = (102, 126, 234)
LASSO_FILL = (102, 126, 234, 26)
REMOTE_DEFAULT_COLOR = "#667eea"
REFERENCE_ALPHA = 110
FONT_NAME = "arial"
FONT_SIZE = 14


@dataclass
class EngineConfig:
    """Per-engine overrides for the interaction constants."""

    snap_distance: float = SNAP_DISTANCE
    hold_delay: float = HOLD_DELAY
    move_tolerance: float = MOVE_TOLERANCE
    edge_pan_threshold: float = EDGE_PAN_THRESHOLD
    edge_pan_speed: float = EDGE_PAN_SPEED
    move_end_debounce: float = MOVE_END_DEBOUNCE
    drag_broadcast_interval: float = DRAG_BROADCAST_INTERVAL
    selection_timeout: float = SELECTION_TIMEOUT
