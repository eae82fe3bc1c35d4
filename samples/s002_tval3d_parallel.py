"""TV/L2 reconstruction of the 3d phantom from noisy parallel beam data."""
import os
import numpy as np
import matplotlib.pyplot as plt
import tval3d
from tval3d.util import relative_error


def main(grid_size=64, slice_count=32):
    """Reconstruct the phantom written by s001_create_3d_phantom.py."""
    if not os.path.isfile(os.path.join('phantoms', 'phantom.raw')):
        print("Run s001_create_3d_phantom.py to generate a 3d phantom!")
        return

    image = np.fromfile(os.path.join('phantoms', 'phantom.raw')).reshape(
        (grid_size, grid_size, slice_count))

    angles = np.linspace(-70, 70, 29)
    projector = tval3d.ParallelBeamProjector(grid_size, angles, slice_count)
    projections = projector.sinogram(image)

    noise = np.random.normal(0, 0.02 * projections.max(),
                             size=projections.shape)
    projections = projections + noise

    opts = {'TVL2': True, 'mu': 2.0 ** 10, 'beta': 2.0 ** 6,
            'mu0': 2.0 ** 6, 'beta0': 2.0 ** 2, 'maxit': 100,
            'nonneg': True, 'disp': True, 'show': True}
    reconstruction, out = tval3d.tval3d(projector, projections, grid_size,
                                        grid_size, slice_count, opts)
    print(out)
    print("Relative error: %f" % relative_error(reconstruction, image))

    plt.figure()
    plt.subplot(1, 2, 1)
    plt.imshow(image[:, :, slice_count // 2], cmap='gray')
    plt.title('phantom')
    plt.subplot(1, 2, 2)
    plt.imshow(reconstruction[:, :, slice_count // 2], cmap='gray')
    plt.title('TVAL3 reconstruction')
    plt.show()


if __name__ == '__main__':
    main()
