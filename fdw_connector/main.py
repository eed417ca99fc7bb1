from __future__ import annotations

import json
import logging
import time
import uuid
from pathlib import Path

import typer

from fdw_connector.common.sanitize import maskSecretsInObject
from fdw_connector.common.time import getDurationMs
from fdw_connector.config.config import Settings, loadSettings
from fdw_connector.connectors.base import ClientSettings
from fdw_connector.connectors.registry import ConnectorRegistry, build_default_registry
from fdw_connector.domain.diagnostics import ErrorKind, render_diagnostic
from fdw_connector.domain.models import Column, OptionScope, ScanHints
from fdw_connector.domain.options import parse_option_list
from fdw_connector.errors import AppError
from fdw_connector.infra.logging.setup import closeLogger, createCommandLogger, logEvent

app = typer.Typer(no_args_is_help=True, add_completion=False)


EXIT_OK = 0
EXIT_SCAN_ABORTED = 1
EXIT_INVALID_INPUT = 2


def ensureDir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает безопасную сводку параметров запуска (без секретов) в stderr,
        чтобы stdout оставался чистым потоком строк.
    """
    typer.echo(
        f"run_id={runId} command={command} sources={sources} "
        f"log_level={settings.log_level} batch_size={settings.batch_size} "
        f"timeout_seconds={settings.timeout_seconds} retries={settings.retries}",
        err=True,
    )


def reportError(error: BaseException) -> int:
    """
    Назначение:
        Печатает диагностику ошибки и подбирает exit code.

    Выходные данные:
        int
            2 - ошибка до I/O (опции/схема/неизвестный коннектор),
            1 - сканирование прервано (клиент/маппинг/протокол).
    """
    diagnostic = render_diagnostic(error)
    typer.echo(f"ERROR [{diagnostic.sqlstate}] {diagnostic.code}: {diagnostic.message}", err=True)
    if diagnostic.hint:
        typer.echo(f"HINT: {diagnostic.hint}", err=True)
    if diagnostic.kind in (ErrorKind.CONFIGURATION, ErrorKind.SCHEMA):
        return EXIT_INVALID_INPUT
    return EXIT_SCAN_ABORTED


def collectOptions(settings: Settings, cliOptions: list[str] | None) -> dict[str, str]:
    """Опции из config-файла, поверх них - --option key=value."""
    options = dict(settings.options)
    options.update(parse_option_list(cliOptions or []))
    return options


def runWithLogger(ctx: typer.Context, commandName: str, runner) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - AppError превращает в диагностику и exit code
        - гарантирует запись итогового события в finally
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()
    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    exitCode = EXIT_OK
    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)
        exitCode = runner(logger)
    except AppError as exc:
        logEvent(logger, logging.ERROR, runId, exc.category, f"code={exc.code} error={exc.message}")
        exitCode = reportError(exc)
    finally:
        durationMs = getDurationMs(startMonotonic, time.monotonic())
        logEvent(
            logger,
            logging.INFO,
            runId,
            "core",
            f"Command finished exit_code={exitCode} duration_ms={durationMs} log_file={logFilePath}",
        )
        closeLogger(logger)

    if exitCode:
        raise typer.Exit(code=exitCode)


def runScanCommand(
    ctx: typer.Context,
    connectorId: str,
    columnSpecs: list[str],
    cliOptions: list[str] | None,
    limit: int | None,
) -> None:
    settings: Settings = ctx.obj["settings"]
    registry: ConnectorRegistry = ctx.obj["registry"]
    runId = ctx.obj["runId"]

    try:
        columns = [Column.parse(spec) for spec in columnSpecs]
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_INPUT)

    def execute(logger) -> int:
        options = collectOptions(settings, cliOptions)
        logEvent(logger, logging.INFO, runId, "config", f"options={maskSecretsInObject(options)}")
        connector = registry.create(
            connectorId,
            options,
            batch_size=settings.batch_size,
            max_pages=settings.max_pages,
            client_settings=ClientSettings(
                timeout_seconds=settings.timeout_seconds,
                retries=settings.retries,
                retry_backoff_seconds=settings.retry_backoff_seconds,
                tls_skip_verify=settings.tls_skip_verify,
            ),
            logger=logger,
        )
        connector.begin(columns, ScanHints(limit=limit), {}, scan_id=runId)
        try:
            emitted = 0
            for row in connector.rows():
                typer.echo(json.dumps(row.as_dict(), ensure_ascii=False, default=str))
                emitted += 1
                if limit is not None and emitted >= limit:
                    break
        finally:
            connector.end()
        return EXIT_OK

    runWithLogger(ctx, "scan", execute)


def runValidateOptionsCommand(
    ctx: typer.Context,
    connectorId: str,
    scope: OptionScope,
    cliOptions: list[str] | None,
) -> None:
    registry: ConnectorRegistry = ctx.obj["registry"]
    runId = ctx.obj["runId"]

    def execute(logger) -> int:
        factory = registry.get(connectorId)
        factory.validate_options(list(cliOptions or []), scope)
        logEvent(logger, logging.INFO, runId, "config", f"options ok connector={connectorId} scope={scope.value}")
        typer.echo(f"options ok: connector={connectorId} scope={scope.value}")
        return EXIT_OK

    runWithLogger(ctx, "validate-options", execute)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    batchSize: int | None = typer.Option(None, "--batch-size", help="Records per fetch (connector default if omitted)"),
    maxPages: int | None = typer.Option(None, "--max-pages", help="Max pages to fetch per scan"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="Source API timeout in seconds"),
    retries: int | None = typer.Option(None, "--retries", help="Retry attempts for source API calls"),
    retryBackoffSeconds: float | None = typer.Option(None, "--retry-backoff-seconds", help="Base backoff for retries"),
    tlsSkipVerify: bool | None = typer.Option(None, "--tls-skip-verify", help="Disable TLS verification"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет настройки и реестр коннекторов в ctx.obj
    """
    if not runId:
        runId = str(uuid.uuid4())

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "batch_size": batchSize,
        "max_pages": maxPages,
        "timeout_seconds": timeoutSeconds,
        "retries": retries,
        "retry_backoff_seconds": retryBackoffSeconds,
        "tls_skip_verify": tlsSkipVerify,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_INPUT)

    ensureDir(loaded.settings.log_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
        "registry": build_default_registry(),
    }


@app.command("connectors")
def connectors(ctx: typer.Context):
    """List registered connectors with their allowed columns and required options."""
    registry: ConnectorRegistry = ctx.obj["registry"]
    for connectorId in registry.ids():
        factory = registry.get(connectorId)
        columns = ", ".join(f"{name} {semantic_type.host_type}" for name, semantic_type in factory.allowed_schema.items())
        typer.echo(f"{connectorId}: columns=[{columns}]")
        for scope in OptionScope:
            required = factory.required_options.get(scope, ())
            typer.echo(f"  {scope.value} options: {', '.join(required) or '-'}")


@app.command("validate-options")
def validateOptions(
    ctx: typer.Context,
    connector: str = typer.Option(..., "--connector", help="Connector id (see `connectors`)"),
    scope: OptionScope = typer.Option(OptionScope.TABLE, "--scope", help="Option scope: server|table"),
    option: list[str] | None = typer.Option(None, "--option", "-o", help="Option as key=value (repeatable)"),
):
    runValidateOptionsCommand(ctx, connector, scope, option)


@app.command("scan")
def scan(
    ctx: typer.Context,
    connector: str = typer.Option(..., "--connector", help="Connector id (see `connectors`)"),
    column: list[str] = typer.Option(..., "--column", "-c", help="Column as name:type, e.g. id:bigint (repeatable)"),
    option: list[str] | None = typer.Option(None, "--option", "-o", help="Option as key=value (repeatable)"),
    limit: int | None = typer.Option(None, "--limit", help="Stop after N rows"),
):
    runScanCommand(ctx, connector, column, option, limit)
