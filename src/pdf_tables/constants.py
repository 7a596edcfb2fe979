"""Page dimensions and layout constants."""

from reportlab.lib.pagesizes import A4, LETTER

# Page dimensions in points
A4_WIDTH, A4_HEIGHT = A4  # 595.27 x 841.89
LETTER_WIDTH, LETTER_HEIGHT = LETTER  # 612 x 792
DEFAULT_MARGIN = 50.0

# Average character width as a fraction of font size (heuristic text measurement)
DEFAULT_CHAR_WIDTH_RATIO = 0.5
DEFAULT_LINE_HEIGHT_MULTIPLIER = 1.2

MIN_COLUMN_WIDTH = 20.0
DEFAULT_PADDING = 5.0
DEFAULT_FONT_SIZE = 10.0
DEFAULT_BORDER_WIDTH = 1.0

# Images sharing a cell are laid out side by side with this gap
IMAGE_GAP = 4.0

# Overlay bar drawn on top of cell images
OVERLAY_GSTATE_NAME = "GSTblOvl"
OVERLAY_OPACITY = 0.5
OVERLAY_FONT_SIZE = 8.0
OVERLAY_BAR_HEIGHT = 16.0
OVERLAY_PADDING = 4.0

# Resource-name prefix for image XObjects
IMAGE_RESOURCE_PREFIX = "TblImg"
