"""Utility functions for tomography."""
import numpy as np
import matplotlib.pyplot as plt


def _grid(shape, center):
    if center is None:
        center = [(size - 1) / 2 for size in shape]
    return [points - offset for points, offset in
            zip(np.meshgrid(*[np.arange(size) for size in shape],
                            indexing='ij'), center)]


def sphere(shape, radius, center=None):
    """Volume of the given shape holding a solid sphere."""
    points = _grid(shape, center)
    return (sum(axis_points ** 2 for axis_points in points)
            <= radius ** 2).astype(float)


def disk(shape, radius, center=None):
    """Image of the given shape holding a disk."""
    return sphere(shape, radius, center)


def cylinder(shape, radius, center=None):
    """Volume with a cylinder along the depth axis."""
    image = disk(shape[:2], radius, center)
    return np.repeat(image[:, :, np.newaxis], shape[2], axis=2)


def cube(shape, corner, size, value=1.0):
    """Volume holding an axis aligned block."""
    volume = np.zeros(shape)
    volume[tuple(slice(start, start + size) for start in corner)] = value
    return volume


def relative_error(estimate, reference):
    """||estimate - reference|| / ||reference||."""
    return (np.linalg.norm(np.ravel(estimate - reference))
            / np.linalg.norm(np.ravel(reference)))


class RealtimeImager:

    """Image picture animation in realtime."""

    def __init__(self, image_0, vmin=None, vmax=None, cmap='gray'):
        """Initialize object."""
        self.figure = plt.figure()
        self.axis = self.figure.add_subplot(111)
        self.vmin = vmin
        self.vmax = vmax
        vmin, vmax = self._limits(image_0)
        self.axes_image = self.axis.imshow(image_0, vmin=vmin, vmax=vmax,
                                           cmap=cmap)
        self.frame = 0
        self.axis.set_title('Initial reconstruction')
        plt.show(block=False)
        self.figure.canvas.draw()

    def _limits(self, image):
        vmin = np.quantile(image, 0.05) if self.vmin is None else self.vmin
        vmax = np.quantile(image, 0.95) if self.vmax is None else self.vmax
        return vmin, vmax

    def update(self, image):
        """Show the next image frame."""
        self.frame += 1
        self.axes_image.set_clim(*self._limits(image))
        self.axes_image.set_data(image)
        self.axis.set_title('Iteration %d' % self.frame)
        self.figure.canvas.draw()
        self.figure.canvas.flush_events()

    def close(self):
        plt.close(self.figure)
