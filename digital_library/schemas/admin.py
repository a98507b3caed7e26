from datetime import datetime
from typing import List

from pydantic import BaseModel


class CatalogStats(BaseModel):
    total_books: int
    total_users: int
    total_downloads: int
    new_users_month: int


class RecentDownload(BaseModel):
    full_name: str
    title: str
    downloaded_at: datetime


class AnalyticsData(BaseModel):
    stats: CatalogStats
    recent_downloads: List[RecentDownload]


class AnalyticsResponse(BaseModel):
    success: bool = True
    data: AnalyticsData
