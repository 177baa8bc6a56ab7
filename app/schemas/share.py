from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ShareRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    share_code: str
    file_name: str
    file_size: int
    file_type: str
    created_at: datetime
    expires_at: datetime
    download_count: int


class ShareCreated(ShareRead):
    share_link: str
    qr_url: str
