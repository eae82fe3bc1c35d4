"""Reconstruct a measured tilt series stored as a multi-page tiff."""
import sys
import numpy as np
import tval3d


def main(measurement_file, angle_file, size=128):
    """Resize, normalize and reconstruct the central lines of a tilt series."""
    tilt_series = tval3d.TiltSeries.from_files(measurement_file, angle_file)
    print("Loaded tilt series of shape", tilt_series.dimensions,
          "with", tilt_series.num_angles, "angles")

    tilt_series.resize(size, size)
    tilt_series.normalize()
    middle = size // 2
    tilt_series.target_lines = list(range(middle - 4, middle + 4))

    reconstruction, out = tval3d.reconstruct_tilt_series(
        tilt_series, opts={'TVL2': True, 'nonneg': True, 'disp': True})
    print(out)
    np.save('reconstruction.npy', reconstruction)


if __name__ == '__main__':
    if len(sys.argv) != 3:
        print("usage: %s <tilt series tiff> <angle file>" % sys.argv[0])
        sys.exit(1)
    main(sys.argv[1], sys.argv[2])
