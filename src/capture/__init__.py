"""Camera frame acquisition and snapshot encoding."""
from .camera import Camera, CameraConfig, Frame
from .snapshot import encode_jpeg, encode_frame_async

__all__ = ["Camera", "CameraConfig", "Frame", "encode_jpeg", "encode_frame_async"]
