from .playback_mocks import (
    COLOR_SIZE,
    DEPTH_SIZE,
    FakeCapture,
    FakePlayback,
    PlaybackFactory,
    depth_image,
    infrared_image,
    make_captures,
    mjpg_buffer,
    record_configuration,
    resize_to_color,
)

__all__ = [
    "COLOR_SIZE",
    "DEPTH_SIZE",
    "FakeCapture",
    "FakePlayback",
    "PlaybackFactory",
    "depth_image",
    "infrared_image",
    "make_captures",
    "mjpg_buffer",
    "record_configuration",
    "resize_to_color",
]
