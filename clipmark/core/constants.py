"""
Global constants for the clipmark annotator

Includes:
- COCO keypoint definitions
- Pose model tensor layout
- Action label set
- Color palettes
"""

# ===== COCO Keypoints (17 points) =====
COCO_KEYPOINT_NAMES = [
    'nose',             # 0
    'left_eye',         # 1
    'right_eye',        # 2
    'left_ear',         # 3
    'right_ear',        # 4
    'left_shoulder',    # 5
    'right_shoulder',   # 6
    'left_elbow',       # 7
    'right_elbow',      # 8
    'left_wrist',       # 9
    'right_wrist',      # 10
    'left_hip',         # 11
    'right_hip',        # 12
    'left_knee',        # 13
    'right_knee',       # 14
    'left_ankle',       # 15
    'right_ankle',      # 16
]

# COCO Skeleton - connections between keypoints for visualization
COCO_SKELETON_CONNECTIONS = [
    # Face
    (0, 1), (0, 2), (1, 3), (2, 4),
    # Upper body
    (5, 6), (5, 7), (7, 9), (6, 8), (8, 10),
    # Torso
    (5, 11), (6, 12), (11, 12),
    # Lower body
    (11, 13), (13, 15), (12, 14), (14, 16),
]

# ===== Pose Model Tensor Layout =====
# Output is channel-major: [cx, cy, w, h, conf, (kx, ky, kconf) * 17] x candidates
NUM_KEYPOINTS = 17
NUM_CANDIDATES = 8400
BOX_CHANNELS = 5
KEYPOINT_CHANNELS = 3
OUTPUT_CHANNELS = BOX_CHANNELS + KEYPOINT_CHANNELS * NUM_KEYPOINTS  # 56

MODEL_INPUT_SIZE = 640
MODEL_INPUT_NAME = 'images'
MODEL_OUTPUT_NAME = 'output0'
MODEL_INPUT_CHANNELS = 3

# Neutral gray (#727272) used for letterbox padding, RGB
LETTERBOX_FILL_COLOR = (114, 114, 114)

# ===== Detection Thresholds =====
DEFAULT_CONF_THRESHOLD = 0.5
DEFAULT_IOU_THRESHOLD = 0.45
KEYPOINT_DRAW_THRESHOLD = 0.5

# ===== Annotation =====
# Order defines the class index written on export
ACTION_LABELS = [
    'ball',
    'block',
    'receive',
    'set',
    'spike',
    'serve',
]

MIN_DRAWN_BOX_SIZE = 5.0  # pixels, source space

# ===== Persistence =====
STORAGE_PREFIX = 'video_'
STORAGE_TTL_DAYS = 7.0
SECONDS_PER_DAY = 24 * 60 * 60

# ===== Color Palettes =====
# RGB, indexed by person position in the detection list
PERSON_COLORS = [
    (0, 255, 0),         # Green
    (255, 0, 0),         # Red
    (0, 0, 255),         # Blue
    (255, 255, 0),       # Yellow
    (255, 0, 255),       # Magenta
    (0, 255, 255),       # Cyan
]

SELECTION_COLOR = (255, 255, 255)
