"""
Create a 3d phantom.
"""
import os
import numpy as np
from tval3d.util import cube, cylinder, sphere


def main(grid_size=64, slice_count=32):
    """Create a simple 3d phantom of shape (grid_size, grid_size, slice_count)."""
    shape = (grid_size, grid_size, slice_count)

    volume = 0.5 * sphere(shape, 0.2 * grid_size,
                          center=(0.35 * grid_size, 0.35 * grid_size,
                                  slice_count / 2))
    volume += cube(shape, (int(0.5 * grid_size), int(0.3 * grid_size), 0),
                   int(0.2 * grid_size))
    volume += 0.75 * cylinder(shape, 0.1 * grid_size,
                              center=(0.5 * grid_size, 0.7 * grid_size))

    if not os.path.isdir('phantoms'):
        os.makedirs('phantoms')
    volume.tofile(os.path.join('phantoms', 'phantom.raw'))
    print("Saved phantom of shape", shape)


if __name__ == '__main__':
    main()
