"""
Core data models for Cast Analytics

Define CanonicalPost as the source-independent contract between the record
adapters and the aggregation engine, plus the report shapes handed to callers.
"""

import datetime as dt
from datetime import datetime
from typing import Any, Optional, List, Union, Literal
from pydantic import BaseModel, Field


PostSource = Literal["store", "live"]
TopPostOrder = Literal["impressions-desc", "recency-desc"]


class CanonicalPost(BaseModel):
    """
    Source-independent post (每則 cast 一筆)

    建立後不可變更；聚合與排序只讀取。
    """
    id: Union[int, str] = Field(default="", description="來源內唯一 ID (無則為空字串)")
    external_id: Optional[str] = Field(None, description="外部 ID (store external_post_id / hub cast hash)")
    text: Optional[str] = Field(None, description="內容")
    created_at: Optional[datetime] = Field(None, description="UTC tz-aware; None 表示時間無法解析")
    impressions: int = Field(default=0, ge=0, description="曝光數 (live 來源固定為 0)")
    engagements: int = Field(default=0, ge=0, description="likes + recasts + replies")
    source: PostSource = Field(..., description="store | live")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": 42,
                "external_id": "0xabc123",
                "text": "gm farcaster",
                "created_at": "2024-01-01T00:00:00Z",
                "impressions": 100,
                "engagements": 7,
                "source": "store"
            }
        }

    @property
    def has_timestamp(self) -> bool:
        return self.created_at is not None


class AccountRecord(BaseModel):
    """帳號中繼資料 (store 或 live profile)"""
    account_id: str = Field(..., description="Farcaster ID (fid)")
    handle: str = Field(default="", description="username")
    display_name: str = Field(default="", description="顯示名稱")
    is_premium: bool = Field(default=False)
    created_at: Optional[datetime] = Field(None, description="帳號建立時間 (可能缺少)")
    follower_count: Optional[int] = Field(None, description="追蹤者數 (僅 live profile 提供)")


class PostRow(BaseModel):
    """Store 的 posts 資料列"""
    id: int
    external_post_id: Optional[str] = None
    text: Optional[str] = None
    impressions: Optional[int] = None
    engagements: Optional[int] = None
    created_at: Any = Field(None, description="原始值 (datetime / 字串 / epoch)，交給 normalize_timestamp")


class AccountSummary(BaseModel):
    """帳號彙總指標 (計算得出，不儲存)"""
    total_posts: int = Field(..., ge=0)
    total_impressions: int = Field(..., ge=0)
    total_engagements: int = Field(..., ge=0)
    avg_engagement_rate_percent: float = Field(..., ge=0, description="engagements / impressions * 100")
    account_age_days: int = Field(..., ge=0)


class DayBucket(BaseModel):
    """單一 UTC 日曆日的統計"""
    date: dt.date = Field(..., description="UTC 日期")
    post_count: int = Field(default=0, ge=0)
    impressions: int = Field(default=0, ge=0)
    engagements: int = Field(default=0, ge=0)


class BestDay(BaseModel):
    date: dt.date
    impressions: int


class Highlights(BaseModel):
    best_day_impressions: Optional[BestDay] = None
    top_post_id: Optional[Union[int, str]] = None


class SummaryReport(BaseModel):
    """Summary 回應"""
    source: PostSource
    range: str = Field(..., description="all | recent")
    account: AccountRecord
    summary: AccountSummary
    highlights: Highlights = Field(default_factory=Highlights)

    class Config:
        json_schema_extra = {
            "example": {
                "source": "store",
                "range": "all",
                "account": {"account_id": "12345", "handle": "alice", "display_name": "Alice"},
                "summary": {
                    "total_posts": 2,
                    "total_impressions": 150,
                    "total_engagements": 12,
                    "avg_engagement_rate_percent": 8.0,
                    "account_age_days": 400
                },
                "highlights": {
                    "best_day_impressions": {"date": "2024-01-01", "impressions": 100},
                    "top_post_id": 1
                }
            }
        }


class ActivityReport(BaseModel):
    """Daily activity 回應"""
    source: PostSource
    range: str = Field(..., description="e.g. 7d")
    account_id: str
    window_start: dt.date
    window_end: dt.date
    days: List[DayBucket] = Field(default_factory=list)


class TopPostsReport(BaseModel):
    """Top posts 回應"""
    source: PostSource
    account_id: str
    order_by: TopPostOrder
    count: int
    posts: List[CanonicalPost] = Field(default_factory=list)
