"""Rendering defaults and zoom sweep constants."""

# Escape test bound on |z|^2
ESCAPE_RADIUS_SQUARED = 10000.0

# Iteration cap; reaching it means "inside the set"
MAX_ITERATIONS = 200

# Full-scale channel value
CHANNEL_MAX = 255

# Output resolution (1080p)
PIXEL_WIDTH = 1920
PIXEL_HEIGHT = 1080

# Zoom target on the edge of the main cardioid (seahorse valley)
ZOOM_CENTER_X = -0.746402
ZOOM_CENTER_Y = 0.1101995

# Plane width before the first zoom step
ZOOM_INITIAL_WIDTH = 1.0

# Width multiplier applied per frame
ZOOM_FACTOR = 0.95

# Frames in the default animation
ZOOM_FRAMES = 300

FILENAME_PATTERN = "frame{:05d}.png"
