"""
CLI: Command Line Interface for Cast Analytics

支援 init-config、summary、activity、top-posts、db-test 與 debug 指令。輸出皆為 JSON。
"""

import click
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from cast_analytics.config import CastAnalyticsConfig
from cast_analytics.errors import CastAnalyticsError, ConfigurationError
from cast_analytics.collectors.hub import build_hub_client, build_neynar_client
from cast_analytics.processing.ranking import ORDERS
from cast_analytics.service import SOURCES, AnalyticsService
from cast_analytics.storage.pg_store import PostgresStore

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.group()
@click.option('--config', 'config_path', default=None, help='Config YAML file path')
@click.option('--verbose', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool):
    """Farcaster account analytics CLI"""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    if config_path:
        logger.info(f"Loading config: {config_path}")
        ctx.obj['config'] = CastAnalyticsConfig.from_yaml(config_path)
    else:
        ctx.obj['config'] = CastAnalyticsConfig()


@cli.command()
@click.option('--out', default='config.example.yaml', help='Output config file path')
def init_config(out: str):
    """產生範本設定檔"""
    example_path = Path(__file__).parent.parent / 'config.example.yaml'

    if example_path.exists():
        with open(example_path, 'r', encoding='utf-8') as f:
            content = f.read()
    else:
        # Minimal fallback
        content = """# Cast Analytics Configuration
hub:
  api_key_env: "NEYNAR_API_KEY"
storage:
  postgres_dsn_env: "DATABASE_URL"
"""

    with open(out, 'w', encoding='utf-8') as f:
        f.write(content)

    click.echo(f"✓ Config file created: {out}")
    click.echo(f"  Edit this file and run: cast-analytics --config {out} summary --fid <fid>")


def source_option(func):
    return click.option(
        '--source',
        type=click.Choice(SOURCES),
        default='store',
        show_default=True,
        help='store = Postgres, live = Farcaster Hub / Neynar'
    )(func)


def fid_option(func):
    return click.option('--fid', required=True, help='Farcaster ID')(func)


@cli.command()
@fid_option
@source_option
@click.pass_context
def summary(ctx, fid: str, source: str):
    """帳號彙總指標"""
    with open_service(ctx.obj['config'], source) as service:
        emit(service.summary(fid, source))


@cli.command()
@fid_option
@source_option
@click.option('--days', default=None, help='Window size in days (1-30, default 7)')
@click.pass_context
def activity(ctx, fid: str, source: str, days: Optional[str]):
    """近 N 天每日活動"""
    with open_service(ctx.obj['config'], source) as service:
        emit(service.activity(fid, source, days=days))


@cli.command()
@fid_option
@source_option
@click.option('--limit', default=None, help='Number of posts (default 5)')
@click.option('--order-by', type=click.Choice(ORDERS), default=None,
              help='Defaults to impressions-desc for store, recency-desc for live')
@click.pass_context
def top_posts(ctx, fid: str, source: str, limit: Optional[str], order_by: Optional[str]):
    """Top posts"""
    with open_service(ctx.obj['config'], source) as service:
        emit(service.top_posts(fid, source, limit=limit, order_by=order_by))


@cli.command()
@click.pass_context
def db_test(ctx):
    """測試 Postgres 連線"""
    cfg = ctx.obj['config']
    try:
        store = initialize_store(cfg)
    except CastAnalyticsError as e:
        raise click.ClickException(f"Database connection failed ❌ ({e})")

    try:
        ok = store.test_connection()
    except CastAnalyticsError as e:
        raise click.ClickException(f"Database connection failed ❌ ({e})")
    finally:
        store.close()

    if not ok:
        raise click.ClickException("Database connection failed ❌")
    click.echo("Database connection is working ✅")


@cli.command()
@fid_option
@click.option('--provider', type=click.Choice(['hub', 'neynar']), default='hub', show_default=True)
@click.pass_context
def hub_casts(ctx, fid: str, provider: str):
    """Debug：列出 live casts (已正規化)"""
    with open_service(ctx.obj['config'], 'live') as service:
        posts = service.live_casts(fid, provider=provider)
        emit({'fid': fid, 'count': len(posts), 'casts': [post.model_dump(mode='json') for post in posts]})


@cli.command()
@fid_option
@click.pass_context
def user(ctx, fid: str):
    """Debug：Neynar user profile"""
    with open_service(ctx.obj['config'], 'live') as service:
        emit(service.live_user(fid))


@contextmanager
def open_service(cfg: CastAnalyticsConfig, source: str):
    """建立 service 並在結束時關閉連線；CastAnalyticsError 轉為 ClickException"""
    try:
        service = initialize_service(cfg, source)
    except CastAnalyticsError as e:
        raise click.ClickException(str(e))

    try:
        yield service
    except (CastAnalyticsError, ValueError) as e:
        logger.error(f"Request failed: {e}")
        raise click.ClickException(str(e)) from e
    finally:
        service.close()


def initialize_service(cfg: CastAnalyticsConfig, source: str) -> AnalyticsService:
    """依來源建立 collaborators（只建立需要的）"""
    if source == "store":
        return AnalyticsService(cfg, store=initialize_store(cfg))

    neynar = build_neynar_client(cfg) if cfg.neynar.enabled else None
    return AnalyticsService(cfg, hub=build_hub_client(cfg), neynar=neynar)


def initialize_store(cfg: CastAnalyticsConfig) -> PostgresStore:
    """初始化 Postgres（fail fast，不 fallback）"""
    dsn = cfg.get_postgres_dsn()
    if not dsn:
        raise ConfigurationError(f"{cfg.storage.postgres_dsn_env} is not set")

    logger.info("Initializing Postgres store...")
    return PostgresStore(dsn, auto_init_schema=cfg.storage.auto_init_schema)


def emit(result):
    """輸出 JSON"""
    data = result.model_dump(mode='json') if hasattr(result, 'model_dump') else result
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


if __name__ == "__main__":
    cli()
