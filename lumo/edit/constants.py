"""
Shared constants for canvas editing.

These mirror the defaults in CanvasSettings; handlers read the live settings,
the constants are the fallbacks used by the controller and tests.
"""

# Distance in canvas units from a node's silhouette within which a
# connection drag snaps onto that node
CONNECTION_RADIUS = 25

# Positions snap to this grid while dragging
SNAP_GRID = (15, 15)

# Rendered Lume body is a 64x64 circle (w-16 h-16)
DEFAULT_NODE_SIZE = 64

# Where newly added Lumes land when no position is given
NEW_NODE_OFFSET = (40, 40)

# Keys that delete the selected Lumes/links
DELETE_KEYS = ('Delete', 'Backspace')

# A background click this soon after a Lume/link click belongs to the same gesture
CLICK_DEBOUNCE_S = 0.3
