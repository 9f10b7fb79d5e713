import argparse
import os
import sys
import numpy as np
from gpv_converter import CsvWriter, convert, open_session, to_array
from gpv_errors import Grib2Error
from gpv_walker import Boundary

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--input", required=True, help="path to GRIB2 file")
    ap.add_argument("--output", required=True, help="path to output .csv")
    ap.add_argument("-n", "--northernmost", type=int, help="latitude of the northernmost point to output (ex. 36532213)")
    ap.add_argument("-s", "--southernmost", type=int, help="latitude of the southernmost point to output (ex. 35432213)")
    ap.add_argument("-w", "--westernmost", type=int, help="longitude of the westernmost point to output (ex. 135532213)")
    ap.add_argument("-e", "--easternmost", type=int, help="longitude of the easternmost point to output (ex. 136532213)")
    ap.add_argument("--header", action="store_true", help="write a CSV header line")
    ap.add_argument("--npy", help="also save the whole grid as .npy (float32, NaN = missing)")
    args = ap.parse_args()

    boundary = Boundary(
        northernmost=args.northernmost, southernmost=args.southernmost,
        westernmost=args.westernmost, easternmost=args.easternmost,
    )

    started = False
    try:
        with open(args.input, "rb") as f:
            session = open_session(f)
            g = session.geometry
            print(f"[decode] referenced_at={session.referenced_at.isoformat()} "
                  f"grid={g.rows}x{g.columns} maxv={session.compression.max_level_used}")

            started = True
            with open(args.output, "w", newline="") as out:
                writer = CsvWriter(out, with_header=args.header)
                convert(session, writer.write_row, boundary)
            print(f"[decode] wrote {args.output} rows={writer.rows}")

            if args.npy:
                y = to_array(session)
                np.save(args.npy, y)
                print(f"[decode] wrote {args.npy} shape={y.shape} dtype={y.dtype}")
    except BaseException as e:
        if started and os.path.exists(args.output):
            # no partial CSV is left behind
            os.remove(args.output)
        if not isinstance(e, Grib2Error):
            raise
        print(f"[decode] error: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
