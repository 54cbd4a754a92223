from pydantic import BaseModel
from typing import Literal

MediaKind = Literal["photo", "video"]


class StoredMedia(BaseModel):
    key: str
    url: str
    content_type: str
    kind: MediaKind
    size: int
