from typing import Optional

from app.core.responses import CamelModel


class UploadedImage(CamelModel):
    url: str
    preview_url: Optional[str] = None
    filename: str
    size: int
    mime_type: str
