"""TVAL3 with an astra projector on the 3d phantom."""
import os
import numpy as np
import astra
import tval3d


def main(grid_size=64, slice_count=32):
    """astra.OpTomo already provides matvec and rmatvec."""
    image = np.fromfile(os.path.join('phantoms', 'phantom.raw')).reshape(
        (grid_size, grid_size, slice_count))
    # astra orders volumes as (slices, rows, cols)
    image = np.transpose(image, [2, 0, 1])

    angles = np.linspace(0, np.pi, 30, endpoint=False)
    proj_geom = astra.create_proj_geom('parallel3d', 1, 1, slice_count,
                                       int(1.5 * grid_size), angles)
    vol_geom = astra.create_vol_geom(grid_size, grid_size, slice_count)
    proj_id = astra.create_projector('cuda3d', proj_geom, vol_geom)

    tomo_projector = astra.OpTomo(proj_id)
    projections = tomo_projector.FP(image)

    reconstruction, out = tval3d.tval3d(tomo_projector, projections,
                                        *tomo_projector.vshape,
                                        opts={'nonneg': True, 'disp': True})
    print(out)
    print("Relative error: %f"
          % tval3d.util.relative_error(reconstruction, image))


if __name__ == '__main__':
    main()
