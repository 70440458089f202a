"""Track records."""

from enum import Enum

from db.fields import Record

TABLE = "tracks"


class TrackType(str, Enum):
    NET = "net"
    SERVER = "server"


class Track(Record):
    id: str | None = None
    type: TrackType | None = None
    station_permanent: bool | None = None
    station_count_max: int | None = None
