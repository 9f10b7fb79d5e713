import argparse
import numpy as np
from gpv_phantom import generate_rain_phantom, write_grib2

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--input", help="path to .npy (uint8 2D level grid); omit to generate a phantom")
    ap.add_argument("--output", required=True, help="path to output .bin (GRIB2)")
    ap.add_argument("--seed", type=int, default=0, help="phantom seed (default 0)")
    ap.add_argument("--land", type=float, default=0.08, help="phantom land patch size (default 0.08)")
    args = ap.parse_args()

    if args.input:
        x = np.load(args.input)
        if x.ndim != 2 or not np.issubdtype(x.dtype, np.integer):
            raise ValueError("Input must be a 2D integer .npy array")
    else:
        x = generate_rain_phantom(seed=args.seed, land=args.land)

    with open(args.output, "wb") as f:
        total = write_grib2(f, x)

    print(f"[encode] wrote {args.output} ({total} bytes)")
    print(f"[encode] shape={x.shape}, maxv={int(x.max())}, missing={int((x == 0).sum())}")

if __name__ == "__main__":
    main()
