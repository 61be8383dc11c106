import argparse
import logging
import os
import numpy as np
from tqdm import tqdm

import config as cfg
from dataio.carmen import read_carmen_log, to_scan, to_pose
from dataio.maps import load_grid
from reloc.hypotheses import NoiseSource
from reloc.params import SamplerParams
from reloc.sampler import GLPoseSampler, LivenessClock
from reloc.se2 import Pose
from reloc.transform import StaticOffset, require_offset
from viz.plot_final import plot_relocalization


def run_relocalization(
    log_path: str,
    map_path: str,
    out_dir: str = "outputs/reloc",
    map_resolution: float | None = None,
    base_to_laser: Pose = Pose(),
    params: SamplerParams | None = None,
    max_scans: int | None = None,
    seed: int | None = None,
    plot_every: int = 0,
):
    """
    Replays a CARMEN log against a known map and collects the pose
    hypotheses of every relocalization cycle.

    Outputs (inside out_dir):
      - hypotheses.txt   (cycle t x y yaw)
      - global_keypoints.txt (x y type)
      - reloc_XXXX.png   (every `plot_every` cycles, 0 = last only)
    """
    print(">>> run_relocalization() STARTED <<<")
    os.makedirs(out_dir, exist_ok=True)

    data = read_carmen_log(log_path)
    if not data:
        print("No flaser entries found. Check the log file")
        return

    if max_scans is not None:
        data = data[:max_scans]

    # fatal if the offset never shows up
    offset = require_offset(StaticOffset(base_to_laser), timeout=cfg.TRANSFORM_TIMEOUT)

    sampler = GLPoseSampler(offset, params=params, noise=NoiseSource(seed))
    grid = load_grid(map_path, resolution=map_resolution)
    sampler.on_map(grid)
    global_kps = sampler.global_landmarks.keypoints

    liveness = LivenessClock(cfg.LIVENESS_PERIOD)
    rows = []
    last = None
    cycles = 0

    for k, e in enumerate(tqdm(data, desc="Relocalization")):
        t = e["t"] if np.isfinite(e["t"]) else float(k)
        if liveness.due(t):
            sampler.check_liveness()

        sampler.on_odometry(to_pose(e))
        result = sampler.on_scan(to_scan(e))
        if result is None:
            continue

        cycles += 1
        last = result
        for p in result.poses:
            rows.append([cycles, t, p.x, p.y, p.yaw])

        if plot_every > 0 and cycles % plot_every == 0:
            plot_relocalization(grid, global_kps, result.poses,
                                out_path=f"{out_dir}/reloc_{cycles:04d}.png")

    hyps = np.array(rows, dtype=float).reshape(-1, 5)
    np.savetxt(f"{out_dir}/hypotheses.txt", hyps, fmt="%.6f", header="cycle t x y yaw")

    markers = np.array([[kp.x, kp.y, int(kp.type)] for kp in global_kps], dtype=float).reshape(-1, 3)
    np.savetxt(f"{out_dir}/global_keypoints.txt", markers, fmt="%.6f", header="x y type")

    if last is not None:
        plot_relocalization(grid, global_kps, last.poses, out_path=f"{out_dir}/reloc_final.png",
                            title="Global localization: last cycle")

    print("Saved relocalization outputs to:", out_dir)
    print("Global keypoints:", len(global_kps))
    print("Cycles:", cycles)
    print("Pose hypotheses:", len(hyps))
    if cycles > 0:
        print("Mean hypotheses / cycle:", len(hyps) / cycles)

    return hyps


def parse_args():
    ap = argparse.ArgumentParser(description="Global localization pose sampler over a CARMEN log")
    ap.add_argument("log_path")
    ap.add_argument("map_path", help=".npy grid (with .json sidecar) or probability map")
    ap.add_argument("--out-dir", default="outputs/reloc")
    ap.add_argument("--map-resolution", type=float, default=None)
    ap.add_argument("--laser-offset", type=float, nargs=3, default=[0.0, 0.0, 0.0],
                    metavar=("X", "Y", "YAW"), help="sensor pose in the body frame")
    ap.add_argument("--max-scans", type=int, default=None)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--plot-every", type=int, default=0)
    ap.add_argument("--no-random-samples", action="store_true")
    ap.add_argument("--matching-rate-th", type=float, default=cfg.MATCHING_RATE_TH)
    return ap.parse_args()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    args = parse_args()

    params = SamplerParams.from_dict({
        "addRandomSamples": not args.no_random_samples,
        "matchingRateThreshold": args.matching_rate_th,
    })
    run_relocalization(
        args.log_path,
        args.map_path,
        out_dir=args.out_dir,
        map_resolution=args.map_resolution,
        base_to_laser=Pose(*args.laser_offset),
        params=params,
        max_scans=args.max_scans,
        seed=args.seed,
        plot_every=args.plot_every,
    )
