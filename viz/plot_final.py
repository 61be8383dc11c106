import numpy as np
import matplotlib.pyplot as plt

from reloc.gridmap import OCCUPIED, FREE
from reloc.keypoints import KeypointType

# same colours as the keypoint markers
TYPE_COLORS = {
    KeypointType.LOCAL_MAXIMUM: (1.0, 0.0, 1.0),
    KeypointType.LOCAL_MINIMUM: (0.0, 1.0, 1.0),
    KeypointType.SADDLE: (1.0, 1.0, 0.0),
}


def grid_image(grid) -> np.ndarray:
    """occupied -> 0 (black), free -> 1 (white), unknown -> 0.5."""
    img = np.full(grid.data.shape, 0.5, dtype=float)
    img[grid.data == FREE] = 1.0
    img[grid.data == OCCUPIED] = 0.0
    return img


def plot_relocalization(grid, keypoints, poses, out_path="outputs/relocalization.png", title=None):
    img = grid_image(grid)
    H, W = img.shape

    plt.figure()
    plt.imshow(img, origin="lower", cmap="gray", vmin=0.0, vmax=1.0)

    if len(keypoints) > 0:
        uv = np.array([[kp.u, kp.v] for kp in keypoints], dtype=float)
        colors = [TYPE_COLORS.get(kp.type, (1.0, 1.0, 0.0)) for kp in keypoints]
        plt.scatter(uv[:, 0], uv[:, 1], s=6, c=colors)

    if len(poses) > 0:
        xy = np.array([[p.x, p.y] for p in poses], dtype=float)
        yaw = np.array([p.yaw for p in poses], dtype=float) - grid.origin.yaw
        g = grid.world_to_grid(xy)
        plt.quiver(g[:, 0], g[:, 1], np.cos(yaw), np.sin(yaw), color="r", width=0.003)

    plt.xlim(0, W - 1)
    plt.ylim(0, H - 1)
    if title is None:
        title = "Global localization: keypoints + pose hypotheses"
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_path, dpi=250)
    plt.close()
    print("saved", out_path)
