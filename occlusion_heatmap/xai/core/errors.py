# occlusion_heatmap/xai/core/errors.py

class HeatmapError(Exception):
    """Base class for every error raised by the heatmap engine."""


class InvalidArgument(HeatmapError, ValueError):
    """Bad geometry, mismatched mask/backup, bad color scale or bad config.
    Always raised before the pixel buffer is touched.
    """


class ScoringFailure(HeatmapError, RuntimeError):
    """The injected scorer raised or returned an unusable score.
    The occluded window has already been restored when this propagates.
    """
