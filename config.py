import numpy as np

# =========================
# Key scan window
# =========================
KEY_SCANS_NUM = 5             # window capacity
KEY_SCAN_INTERVAL_DIST = 0.5  # meters
KEY_SCAN_INTERVAL_YAW = 5.0   # degrees

# a scan needs at least this fraction of in-range readings
MIN_VALID_SCAN_RATE = 0.1

# =========================
# Distance field / keypoints
# =========================
SDF_BLUR = True
SDF_BLUR_SIZE = 5       # cells (square kernel)
SDF_BLUR_SIGMA = 5.0    # cells

GRADIENT_SQUARE_TH = 1e-3
KEYPOINTS_MIN_DIST_FROM_MAP = 1.0  # meters, also beam validity floor

# =========================
# Descriptor / matching
# =========================
SDF_FEATURE_WINDOW_SIZE = 1.0   # meters
AVERAGE_SDF_DELTA_TH = 1.0      # meters

# =========================
# Pose hypotheses
# =========================
ADD_RANDOM_SAMPLES = True
ADD_OPPOSITE_SAMPLES = True
RANDOM_SAMPLES_NUM = 10
POSITIONAL_RANDOM_NOISE = 0.5      # m (std dev)
ANGULAR_RANDOM_NOISE = 0.3         # rad (std dev)
MATCHING_RATE_TH = 0.1             # 0 disables validation

# -------------------------
# Startup / liveness
# -------------------------
TRANSFORM_TIMEOUT = 60.0   # s, sensor-to-body offset lookup
LIVENESS_PERIOD = 300.0    # s

# -------------------------
# Offline replay (CARMEN logs)
# -------------------------
LIDAR_MIN_RANGE = 0.10
LIDAR_MAX_RANGE = 30.0
LIDAR_ANGLE_MIN = -np.pi / 2
LIDAR_ANGLE_INC = np.deg2rad(0.5)

# probability map -> ternary occupancy
MAP_OCC_TH = 0.65
MAP_FREE_TH = 0.35
