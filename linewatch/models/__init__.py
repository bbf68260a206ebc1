"""Line Watch data models and schemas."""

from linewatch.models.schemas import (
    AlertType,
    GameLine,
    LinesResponse,
    SharpAlert,
    SharpSide,
    SharpTotal,
    SnapshotLabel,
)

__all__ = [
    "AlertType",
    "GameLine",
    "LinesResponse",
    "SharpAlert",
    "SharpSide",
    "SharpTotal",
    "SnapshotLabel",
]
