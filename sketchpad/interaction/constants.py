"""
Shared constants for the interaction layer.

These values are used by both the NiceGUI handlers (screen -> ray) and
the scene view (camera setup). Keep them in sync!
"""

# Scene canvas size in pixels; pointer offsets are normalized against it
SCENE_WIDTH = 960
SCENE_HEIGHT = 640

# Vertical field of view of the perspective camera, in degrees
CAMERA_FOV = 75.0

# Initial camera pose (z is up)
CAMERA_POSITION = (0.0, -30.0, 10.0)
CAMERA_LOOK_AT = (0.0, 0.0, 5.0)
CAMERA_UP = (0.0, 0.0, 1.0)

# Preview pulse: scale = 1 + amplitude * sin(t * rate)
PREVIEW_PULSE_AMPLITUDE = 0.05
PREVIEW_PULSE_RATE = 5.0

# Minimum seconds between forwarded pointer-move events
POINTER_MOVE_THROTTLE = 0.05
