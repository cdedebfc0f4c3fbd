"""
Analytics service

選擇資料來源 (store | live)，取得原始資料後交給 adapters，再由 buckets / metrics / ranking 計算。
Collaborators 由呼叫端注入；每次呼叫都重新抓取，不快取、不重試、來源失敗時整個請求失敗。
"""

from typing import Any, List, Optional, Tuple
from datetime import date, datetime
import logging

from cast_analytics.config import CastAnalyticsConfig
from cast_analytics.errors import AccountNotFoundError, ConfigurationError, InvalidAccountIdError
from cast_analytics.models import (
    AccountRecord,
    ActivityReport,
    CanonicalPost,
    Highlights,
    PostSource,
    SummaryReport,
    TopPostOrder,
    TopPostsReport,
)
from cast_analytics.processing.adapters import adapt_cast_payload, adapt_store_posts, adapt_user_profile
from cast_analytics.processing.buckets import aggregate, aggregate_with_stats, resolve_window_days
from cast_analytics.processing.metrics import best_day, summarize
from cast_analytics.processing.ranking import ORDERS, default_order_for, resolve_limit, top_n
from cast_analytics.processing.timestamps import normalize_timestamp
from cast_analytics.utils.numbers import parse_int
from cast_analytics.utils.time import build_window, utc_today, utcnow

logger = logging.getLogger(__name__)

SOURCES = ("store", "live")


def validate_source(source: str) -> PostSource:
    if source not in SOURCES:
        raise ValueError(f"Unsupported source: {source} (expected one of {SOURCES})")
    return source


def validate_account_id(raw: Any) -> str:
    """Store 帳號 ID：非空字串"""
    account_id = str(raw).strip() if raw is not None else ""
    if not account_id:
        raise InvalidAccountIdError("Missing account id (e.g. --fid 12345)")
    return account_id


def validate_fid(raw: Any) -> int:
    """Live API 帳號 ID：正整數 fid"""
    fid = parse_int(raw)
    if fid is None or fid <= 0:
        raise InvalidAccountIdError(f"Missing or invalid fid: {raw!r} (e.g. 774643)")
    return fid


class AnalyticsService:
    """Summary / activity / top posts for one account"""

    def __init__(
        self,
        config: Optional[CastAnalyticsConfig] = None,
        store=None,
        hub=None,
        neynar=None
    ):
        """
        初始化 AnalyticsService

        Args:
            config: 設定
            store: PostgresStore (get_account / get_posts)
            hub: HubClient (get_recent_posts)
            neynar: NeynarClient (get_user / get_user_casts)，可省略
        """
        self.config = config or CastAnalyticsConfig()
        self.store = store
        self.hub = hub
        self.neynar = neynar

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def summary(
        self,
        account_id: Any,
        source: str = "store",
        now: Optional[datetime] = None
    ) -> SummaryReport:
        """
        帳號彙總 + highlights

        Args:
            account_id: farcaster_id (store) 或 fid (live)
            source: store | live
            now: 當前時間 (測試用)

        Returns:
            SummaryReport
        """
        source = validate_source(source)
        now = now or utcnow()
        account, posts = self._load(account_id, source, with_profile=True)

        summary = summarize(account, posts, now=now)

        window_start, _ = build_window(
            self.config.analytics.highlight_window_days,
            today=utc_today(now)
        )
        buckets = aggregate(posts, window_start, self.config.analytics.highlight_window_days)
        top = top_n(posts, 1, default_order_for(source))

        report = SummaryReport(
            source=source,
            range="all" if source == "store" else "recent",
            account=account,
            summary=summary,
            highlights=Highlights(
                best_day_impressions=best_day(buckets),
                top_post_id=top[0].id if top else None
            )
        )

        logger.info(f"Summary for {account.account_id} ({source}): {summary.total_posts} posts, " +
                    f"age={summary.account_age_days}d")
        return report

    def activity(
        self,
        account_id: Any,
        source: str = "store",
        days: Any = None,
        today: Optional[date] = None
    ) -> ActivityReport:
        """
        近 N 天每日活動

        Args:
            account_id: farcaster_id (store) 或 fid (live)
            source: store | live
            days: 天數 (夾在 [1, max_window_days])
            today: 窗口最後一天 (預設 UTC 今天)

        Returns:
            ActivityReport (由舊到新，恰好 N 天)
        """
        source = validate_source(source)
        analytics = self.config.analytics
        window_days = resolve_window_days(days, analytics.default_window_days, analytics.max_window_days)
        window_start, window_end = build_window(window_days, today=today)

        account, posts = self._load(account_id, source, with_profile=False)
        buckets, stats = aggregate_with_stats(posts, window_start, window_days)

        if stats['out_of_window'] or stats['unresolved']:
            logger.info(f"Activity for {account.account_id}: skipped {stats['out_of_window']} " +
                        f"out-of-window and {stats['unresolved']} undated posts")

        return ActivityReport(
            source=source,
            range=f"{window_days}d",
            account_id=account.account_id,
            window_start=window_start,
            window_end=window_end,
            days=buckets
        )

    def top_posts(
        self,
        account_id: Any,
        source: str = "store",
        limit: Any = None,
        order_by: Optional[TopPostOrder] = None
    ) -> TopPostsReport:
        """
        Top posts

        Args:
            account_id: farcaster_id (store) 或 fid (live)
            source: store | live
            limit: 數量 (非數字或 <= 0 時使用預設值)
            order_by: impressions-desc | recency-desc (預設依來源決定)

        Returns:
            TopPostsReport
        """
        source = validate_source(source)
        order_by = order_by or default_order_for(source)
        if order_by not in ORDERS:
            raise ValueError(f"Unsupported order_by: {order_by}")
        limit = resolve_limit(limit, self.config.analytics.default_top_limit)

        account, posts = self._load(account_id, source, with_profile=False)
        selected = top_n(posts, limit, order_by)

        return TopPostsReport(
            source=source,
            account_id=account.account_id,
            order_by=order_by,
            count=len(selected),
            posts=selected
        )

    def live_casts(self, fid: Any, provider: str = "hub") -> List[CanonicalPost]:
        """
        Debug：直接取得 live casts (hub 或 neynar)

        Args:
            fid: Farcaster ID
            provider: hub | neynar

        Returns:
            List of CanonicalPost
        """
        fid = validate_fid(fid)
        if provider == "hub":
            return self._live_posts(fid)
        if provider == "neynar":
            payload = self._require(self.neynar, "neynar").get_user_casts(fid, self.config.hub.page_size)
            return adapt_cast_payload(payload)
        raise ValueError(f"Unsupported provider: {provider}")

    def live_user(self, fid: Any) -> AccountRecord:
        """Debug：Neynar user profile"""
        fid = validate_fid(fid)
        return self._live_account(fid)

    def close(self):
        for collaborator in (self.store, self.hub, self.neynar):
            if collaborator is not None and hasattr(collaborator, 'close'):
                collaborator.close()

    # ------------------------------------------------------------------
    # Source loading
    # ------------------------------------------------------------------

    def _load(
        self,
        account_id: Any,
        source: PostSource,
        with_profile: bool
    ) -> Tuple[AccountRecord, List[CanonicalPost]]:
        if source == "store":
            return self._load_store(validate_account_id(account_id))

        fid = validate_fid(account_id)
        if with_profile and self.neynar is not None and self.config.neynar.enabled:
            account = self._live_account(fid)
        else:
            account = AccountRecord(account_id=str(fid))
        return account, self._live_posts(fid)

    def _load_store(self, account_id: str) -> Tuple[AccountRecord, List[CanonicalPost]]:
        store = self._require(self.store, "store")
        naive_tz = self.config.storage.naive_timezone

        account = store.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account not found for Farcaster ID {account_id}")

        account = account.model_copy(
            update={"created_at": normalize_timestamp(account.created_at, naive_tz)}
        )
        posts = adapt_store_posts(store.get_posts(account_id), naive_tz)
        return account, posts

    def _live_account(self, fid: int) -> AccountRecord:
        raw = self._require(self.neynar, "neynar").get_user(fid)
        account = adapt_user_profile(raw, fid)
        if account is None:
            raise AccountNotFoundError(f"No Farcaster user found for fid {fid}")
        return account

    def _live_posts(self, fid: int) -> List[CanonicalPost]:
        payload = self._require(self.hub, "hub").get_recent_posts(fid, self.config.hub.page_size)
        posts = adapt_cast_payload(payload)
        logger.info(f"Loaded {len(posts)} live casts for fid {fid}")
        return posts

    @staticmethod
    def _require(collaborator, name: str):
        if collaborator is None:
            raise ConfigurationError(f"No {name} client configured for this request")
        return collaborator
