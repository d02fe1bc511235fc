"""
Input runtimes for Spotter.

- FrameRuntime: latest-frame mailbox from the capture pipeline
- MotionRuntime: accelerometer thresholding
"""

from .frame_runtime import FrameRuntime
from .motion_runtime import MotionRuntime

__all__ = ['FrameRuntime', 'MotionRuntime']
