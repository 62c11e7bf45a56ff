from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer

from decs_provider.common.run_id import generate_run_id
from decs_provider.common.sanitize import maskSecret
from decs_provider.config import Settings, load_settings
from decs_provider.domain.exceptions import DecodeError, TransportError
from decs_provider.domain.resolution.rules import MatchPolicy
from decs_provider.domain.state import ResourceState
from decs_provider.errors import AppError
from decs_provider.infra.http.catalog_reader import DecsCatalogReader
from decs_provider.infra.http.decs_client import DecsApiClient
from decs_provider.logging_setup import (
    captureStdStreams,
    closeCommandLogger,
    createCommandLogger,
    logEvent,
)
from decs_provider.lookups.image.spec import LOOKUP_TYPE as IMAGE_LOOKUP_TYPE
from decs_provider.lookups.registry import LookupRegistry, build_default_registry
from decs_provider.usecases.lookup_usecase import LookupUseCase

app = typer.Typer(no_args_is_help=True, add_completion=False)
lookupApp = typer.Typer(no_args_is_help=True)

def ensureDir(path: str) -> None:
    """Создаёт каталог, если он отсутствует."""
    Path(path).mkdir(parents=True, exist_ok=True)

def requireApi(settings: Settings) -> None:
    """
    Назначение:
        Проверяет наличие параметров API для команд, которым нужен доступ к контроллеру.

    Поведение:
        - Если чего-то не хватает, exit code 2.
    """
    missing = []
    if not settings.controller_url:
        missing.append("controller_url")
    if not settings.jwt and not (settings.user and settings.password):
        missing.append("jwt or user/password")

    if missing:
        typer.echo(f"ERROR: missing API settings: {', '.join(missing)}", err=True)
        raise typer.Exit(code=2)

def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает безопасную сводку параметров запуска (без секретов) в stderr,
        чтобы stdout оставался чистым JSON.
    """
    typer.echo(
        f"run_id={runId} command={command} "
        f"controller_url={settings.controller_url} user={settings.user} "
        f"jwt={maskSecret(settings.jwt)} password={maskSecret(settings.password)} sources={sources} "
        f"log_level={settings.log_level} match_policy={settings.match_policy}",
        err=True,
    )

def buildApiClient(settings: Settings) -> DecsApiClient:
    return DecsApiClient(
        baseUrl=settings.controller_url or "",
        jwt=settings.jwt,
        username=settings.user,
        password=settings.password,
        tlsSkipVerify=settings.tls_skip_verify,
        caFile=settings.ca_file,
        retries=settings.retries,
        retryBackoffSeconds=settings.retry_backoff_seconds,
    )

def runWithLogging(
    ctx: typer.Context,
    commandName: str,
    requiresApiAccess: bool,
    runner,
    lookupType: str | None = None,
) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - валидирует параметры API
        - дублирует stdout/stderr в лог (captureStdStreams)
        - гарантирует восстановление потоков и закрытие лога в finally
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    try:
        logger, _logFilePath = createCommandLogger(
            commandName=commandName,
            logDir=settings.log_dir,
            runId=runId,
            logLevel=settings.log_level,
            lookupType=lookupType,
        )
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    exitCode: int | None = None

    try:
        with captureStdStreams(logger):
            logEvent(logger, logging.INFO, runId, "core", "Command started")
            printRunHeader(runId, commandName, settings, sources)

            if requiresApiAccess:
                try:
                    requireApi(settings)
                except typer.Exit:
                    logEvent(logger, logging.ERROR, runId, "config", "Missing API settings")
                    exitCode = 2
                    return

            exitCode = runner(logger)

    finally:
        logEvent(logger, logging.INFO, runId, "core", f"Command finished exit_code={exitCode}")
        closeCommandLogger(logger)

        if exitCode is not None:
            raise typer.Exit(code=exitCode)

def readStateFile(statePath: str | None) -> ResourceState | None:
    if not statePath:
        return None
    p = Path(statePath)
    if not p.exists():
        return None
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"state file must contain a JSON object: {statePath}")
    return ResourceState.from_dict(data)

def writeStateFile(statePath: str, state: ResourceState) -> None:
    p = Path(statePath)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(state.to_dict(), f, ensure_ascii=False, indent=2, sort_keys=True)

def runLookupCommand(
    ctx: typer.Context,
    lookupType: str,
    rawCriteria: dict[str, Any],
    statePath: str | None,
    strict: bool | None,
) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    registry: LookupRegistry = ctx.obj["registry"]
    commandName = f"lookup-{lookupType.replace('_', '-')}"

    def execute(logger) -> int:
        try:
            policy = MatchPolicy.STRICT if strict else MatchPolicy.parse(settings.match_policy)
            state = readStateFile(statePath)
        except (ValueError, OSError) as exc:
            logEvent(logger, logging.ERROR, runId, "config", f"Lookup setup failed: {exc}")
            typer.echo(f"ERROR: {exc}", err=True)
            return 2

        client = buildApiClient(settings)
        try:
            usecase = LookupUseCase(
                registry,
                DecsCatalogReader(client, logger=logger, run_id=runId),
                policy=policy,
                logger=logger,
                run_id=runId,
            )
            state = usecase.run(lookupType, rawCriteria, state)
        except AppError as exc:
            logEvent(logger, logging.ERROR, runId, exc.category.value, f"Lookup failed: {exc.code}: {exc}")
            typer.echo(f"ERROR: {exc}", err=True)
            return exc.exit_code
        finally:
            client.close()

        if statePath:
            try:
                writeStateFile(statePath, state)
            except OSError as exc:
                logEvent(logger, logging.ERROR, runId, "state", f"Failed to write state: {exc}")
                typer.echo(f"ERROR: failed to write state file: {exc}", err=True)
                return 2
            logEvent(logger, logging.INFO, runId, "state", f"State written: {statePath}")

        typer.echo(json.dumps(state.to_dict(), ensure_ascii=False, sort_keys=True))
        return 0

    runWithLogging(
        ctx=ctx,
        commandName=commandName,
        requiresApiAccess=True,
        runner=execute,
        lookupType=lookupType,
    )

def runCheckApiCommand(ctx: typer.Context) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    registry: LookupRegistry = ctx.obj["registry"]

    def execute(logger) -> int:
        client = buildApiClient(settings)
        try:
            reader = DecsCatalogReader(client, logger=logger, run_id=runId)
            count = len(reader.list_candidates(registry.get(IMAGE_LOOKUP_TYPE), {}))
        except (TransportError, DecodeError) as exc:
            logEvent(logger, logging.ERROR, runId, "api", f"API check failed: {exc}")
            typer.echo(f"ERROR: API check failed: {exc}", err=True)
            return 2
        finally:
            client.close()
        logEvent(logger, logging.INFO, runId, "api", f"api ok controller_url={settings.controller_url} images={count}")
        typer.echo(f"api ok images={count}")
        return 0

    runWithLogging(
        ctx=ctx,
        commandName="check-api",
        requiresApiAccess=True,
        runner=execute,
    )

@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    controllerUrl: str | None = typer.Option(None, "--controller-url", help="DECS controller URL"),
    jwt: str | None = typer.Option(None, "--jwt", help="JWT for bearer auth (avoid; use env/file)"),
    jwtFile: str | None = typer.Option(None, "--jwt-file", help="Read JWT from file"),
    user: str | None = typer.Option(None, "--user", help="API user for basic auth"),
    password: str | None = typer.Option(None, "--password", help="API password (avoid; use env)"),
    tlsSkipVerify: bool | None = typer.Option(None, "--tls-skip-verify", help="Disable TLS verification"),
    caFile: str | None = typer.Option(None, "--ca-file", help="CA file path"),
    retries: int | None = typer.Option(None, "--retries", help="Transport retry attempts on 429/5xx/network errors"),
    retryBackoffSeconds: float | None = typer.Option(None, "--retry-backoff-seconds", help="Base backoff for retries"),
    matchPolicy: str | None = typer.Option(None, "--match-policy", help="first_match|strict"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - создаёт каталог логов и реестр типов lookup
        - сохраняет всё в ctx.obj для подкоманд
    """
    if jwtFile and not jwt:
        p = Path(jwtFile)
        if not p.exists() or not p.is_file():
            typer.echo(f"ERROR: jwt-file not found: {jwtFile}", err=True)
            raise typer.Exit(code=2)
        jwt = p.read_text(encoding="utf-8").strip()

    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "controller_url": controllerUrl,
        "jwt": jwt,
        "user": user,
        "password": password,
        "tls_skip_verify": tlsSkipVerify,
        "ca_file": caFile,
        "retries": retries,
        "retry_backoff_seconds": retryBackoffSeconds,
        "log_dir": logDir,
        "log_level": logLevel,
        "match_policy": matchPolicy,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    ensureDir(loaded.settings.log_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
        "registry": build_default_registry(),
    }

@lookupApp.command("image")
def lookupImage(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Name of the OS image to find (case sensitive)"),
    pool: str | None = typer.Option(None, "--pool", help="Name of the pool, where the OS image should be found"),
    sepId: int | None = typer.Option(None, "--sep-id", help="ID of the SEP, where the OS image should be found"),
    tenantId: int | None = typer.Option(None, "--tenant-id", help="ID of the tenant to limit OS image search to"),
    rgid: int | None = typer.Option(None, "--rgid", help="ID of the resource group to limit image search to"),
    stateFile: str | None = typer.Option(None, "--state-file", help="JSON state file to read and write back"),
    strict: bool | None = typer.Option(None, "--strict", help="Fail when more than one image matches"),
):
    runLookupCommand(
        ctx=ctx,
        lookupType="image",
        rawCriteria={"name": name, "pool": pool, "sep_id": sepId, "tenant_id": tenantId, "rgid": rgid},
        statePath=stateFile,
        strict=strict,
    )

@lookupApp.command("resource-group")
def lookupResourceGroup(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Name of the resource group (case sensitive)"),
    tenantId: int | None = typer.Option(None, "--tenant-id", help="ID of the tenant, where the resource group should be found"),
    stateFile: str | None = typer.Option(None, "--state-file", help="JSON state file to read and write back"),
    strict: bool | None = typer.Option(None, "--strict", help="Fail when more than one resource group matches"),
):
    runLookupCommand(
        ctx=ctx,
        lookupType="resource_group",
        rawCriteria={"name": name, "tenant_id": tenantId},
        statePath=stateFile,
        strict=strict,
    )

@app.command("lookups")
def listLookups(ctx: typer.Context):
    registry: LookupRegistry = ctx.obj["registry"]
    for lookupType in registry.list_types():
        spec = registry.get(lookupType)
        fields = ",".join(spec.criteria_schema.field_names())
        typer.echo(f"{lookupType} api={spec.api_path} criteria={fields}")

@app.command("check-api")
def checkApi(ctx: typer.Context):
    runCheckApiCommand(ctx)

app.add_typer(lookupApp, name="lookup")
