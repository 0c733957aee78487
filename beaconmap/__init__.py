from .models import Role, DeviceReading, DeviceSet, Viewport, PlanSource, FloorPlanAsset
from .reconciler import reconcile
from .viewport import ViewportController, Zoom, PanBy, Resize
from .errors import ViewerError, MapFileError, DecodeError, UnknownFormat, DecodeFailed, StaleDecode
from .decoder import ImageDecoder, decode_image, resolve_media_type
from .mapfile import load_map, parse_map
from .backend import PositioningBackend, SimulatedBackend
from .poller import DevicePoller
from .session import MapSession
from .scene import MapScene, MapView
from .config import ViewerConfig, load_config, setup_logging

__all__ = [
    "Role", "DeviceReading", "DeviceSet", "Viewport", "PlanSource", "FloorPlanAsset",
    "reconcile", "ViewportController", "Zoom", "PanBy", "Resize",
    "ViewerError", "MapFileError", "DecodeError", "UnknownFormat", "DecodeFailed", "StaleDecode",
    "ImageDecoder", "decode_image", "resolve_media_type", "load_map", "parse_map",
    "PositioningBackend", "SimulatedBackend", "DevicePoller", "MapSession",
    "MapScene", "MapView", "ViewerConfig", "load_config", "setup_logging",
]
