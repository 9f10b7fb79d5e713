import argparse
import numpy as np
import matplotlib.pyplot as plt
from gpv_phantom import GRID

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--input", required=True, help="path to .npy grid written by gpv_decode.py --npy")
    ap.add_argument("--output", required=True, help="path to output .png")
    ap.add_argument("--scale", type=float, default=10.0, help="divide level values by this (default 10 -> mm/h)")
    args = ap.parse_args()

    y = np.load(args.input) / args.scale
    extent = [
        GRID["westernmost"] / 1e6, GRID["easternmost"] / 1e6,
        GRID["southernmost"] / 1e6, GRID["northernmost"] / 1e6,
    ]

    plt.figure(figsize=(6, 7))
    # NaN (missing) cells stay transparent
    plt.imshow(np.ma.masked_invalid(y), cmap="viridis", extent=extent, origin="upper")
    plt.colorbar(label="mm/h", shrink=0.8)
    plt.xlabel("longitude")
    plt.ylabel("latitude")
    plt.tight_layout()
    plt.savefig(args.output, dpi=150)
    print(f"[plot_grid] wrote {args.output}")

if __name__ == "__main__":
    main()
