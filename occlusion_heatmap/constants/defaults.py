# occlusion_heatmap/constants/defaults.py

# Default Knobs For The Occlusion Heatmap Engine
# Used By HeatmapConfig And The Refiners When A Value Is Not Provided

# Sweep Geometry
SLIDE_RATIO = 0.5          # Base Slide Step As A Fraction Of The Window Size
MAX_GRID_FRACTION = 0.5    # Default Max Window = ceil(Image Size * Fraction)
MIN_GRID_SIZE = 5          # Smallest Window Side Refinement May Reach

# Occlusion Mask
MASK_GAIN = 2.0            # Sharpens The Radial Falloff Before Clamping To [0, 1]

# Global Shrink Strategy
SHRINK_RATIO = 0.9         # Window Scale Applied After Each Whole-Image Pass
SHRINK_ITERATIONS = 100    # Pass Budget For The Shrink Strategy

# Color Scale
SCALE_SIZE = 256           # Entries In The Injected Score -> RGBA Lookup Table

# Allowed Choices
STRATEGIES = ("adaptive", "shrink")
BLEND_MODES = ("over", "replace")
