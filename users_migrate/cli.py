# 說明：本模組提供命令列介面，方便透過 CLI 套用 users 遷移、檢查狀態與 schema，以及輸出 DDL。
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import create_engine

from .config import LoadedConfig, MigrateSettings, build_alembic_config, build_loaded_config
from .detector.schema_diff import SchemaDiffDetector
from .detector.status import MigrationStatus, MigrationStatusDetector
from .errors import MigrationError
from .logconfig import setup_logging
from .runner import MigrationResult, apply_migration, render_sql
from .schema import metadata, render_create_ddl
from .users import create_user, delete_user, list_users, touch_created_at

app = typer.Typer(help="users-migrate CLI 工具")
console = Console()


@dataclass(slots=True)
class CLIState:
    settings: MigrateSettings

    def loaded(self) -> LoadedConfig:
        return build_loaded_config(self.settings)


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Optional[str] = typer.Option(
        None, "--database-url", "-d", help="資料庫連線 URL（預設讀取 USERS_MIGRATE_DATABASE_URL）"
    ),
    alembic_ini: Optional[str] = typer.Option(None, "--ini", help="Alembic 設定檔路徑"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="日誌等級"),
) -> None:
    overrides = {
        "database_url": database_url,
        "alembic_ini_path": alembic_ini,
        "log_level": log_level,
    }
    settings = MigrateSettings(**{key: value for key, value in overrides.items() if value is not None})
    setup_logging(settings.log_level)
    ctx.obj = CLIState(settings=settings)


def _fail(exc: MigrationError) -> NoReturn:
    console.print(f"[red]{type(exc).__name__}：{exc}[/]")
    raise typer.Exit(code=1)


def _render_migration(result: MigrationResult) -> None:
    table = Table(title="users 遷移結果")
    table.add_column("項目")
    table.add_column("狀態 / 詳細資訊")
    table.add_row("追蹤方式", "Alembic 版本表" if result.tracked else "不追蹤（直接套用）")
    table.add_row("是否套用", "是" if result.applied else "否（已套用過）")
    table.add_row("版本", result.revision or "-")
    table.add_row("套用前版本表", ", ".join(result.heads_before) or "（空）")
    table.add_row("套用後版本表", ", ".join(result.heads_after) or "（空）")
    console.print(table)


def _render_status(status: MigrationStatus) -> None:
    table = Table(title="users 遷移狀態")
    table.add_column("項目")
    table.add_column("狀態 / 詳細資訊")
    table.add_row("腳本 head", ", ".join(status.script_heads) or "（無）")
    table.add_row("資料庫版本", ", ".join(status.database_heads) or "（未初始化）")
    table.add_row("待套用", ", ".join(status.pending) or "無")
    if status.has_unknown_heads:
        table.add_row("未知版本", ", ".join(status.unknown_database_heads))
    console.print(table)


@app.command()
def upgrade(
    ctx: typer.Context,
    untracked: bool = typer.Option(
        False, "--untracked", help="不經 Alembic 版本表直接套用（資料表已存在時會失敗）"
    ),
) -> None:
    """套用 users 遷移。"""

    state: CLIState = ctx.obj
    try:
        result = apply_migration(state.loaded(), tracked=not untracked)
    except MigrationError as exc:
        _fail(exc)
    _render_migration(result)


@app.command()
def status(ctx: typer.Context) -> None:
    """檢查遷移是否已套用；尚待套用時以代碼 1 結束。"""

    state: CLIState = ctx.obj
    try:
        report = MigrationStatusDetector(build_alembic_config(state.loaded())).detect()
    except MigrationError as exc:
        _fail(exc)
    _render_status(report)
    if not report.is_applied:
        raise typer.Exit(code=1)


@app.command()
def verify(ctx: typer.Context) -> None:
    """比對資料庫中的 users 資料表與定義；有差異時以代碼 1 結束。"""

    state: CLIState = ctx.obj
    try:
        report = SchemaDiffDetector(build_alembic_config(state.loaded()), metadata).detect()
    except MigrationError as exc:
        _fail(exc)
    if report.has_changes:
        console.print("[yellow]Schema 差異：[/]")
        for operation in report.operations:
            console.print(f"  {operation}")
        raise typer.Exit(code=1)
    console.print("[green]users 資料表與定義一致[/]")


@app.command()
def sql(
    ctx: typer.Context,
    dialect: Optional[str] = typer.Option(
        None, "--dialect", help="只輸出指定方言的 CREATE TABLE（例如 sqlite、postgresql）"
    ),
) -> None:
    """輸出遷移的 SQL，不連線資料庫。"""

    if dialect:
        try:
            ddl = render_create_ddl(dialect)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        typer.echo(f"{ddl};")
        return
    state: CLIState = ctx.obj
    typer.echo(render_sql(state.loaded()))


@app.command()
def demo(ctx: typer.Context) -> None:
    """對目前資料庫執行一次新增、查詢、更新、刪除的示範。"""

    state: CLIState = ctx.obj
    loaded = state.loaded()
    engine = create_engine(loaded.database_url, echo=loaded.echo_sql, future=True)
    email = f"test+{int(time.time())}@example.com"
    try:
        with engine.begin() as conn:
            console.print("[bold]CRUD - Create[/]")
            user = create_user(conn, email)
            console.print(user)

            console.print("[bold]CRUD - Read[/]")
            console.print(list_users(conn))

            console.print("[bold]CRUD - Update[/]")
            touch_created_at(conn, user.id)
            console.print(list_users(conn))

            console.print("[bold]CRUD - Delete[/]")
            delete_user(conn, user.id)
            console.print(list_users(conn))
    except MigrationError as exc:
        _fail(exc)
    finally:
        engine.dispose()


if __name__ == "__main__":
    app()
