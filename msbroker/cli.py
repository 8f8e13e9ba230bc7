from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
import uvicorn
import yaml
from fastapi.encoders import jsonable_encoder

from msbroker.errors import BrokerException
from msbroker.logging_config import configure_logging
from msbroker.main import build_controller, create_app
from msbroker.models import ContextProfile, CreateServiceInstanceRequest, OperationState

configure_logging()
logger = logging.getLogger(__name__)
app = typer.Typer(help="Managed services broker CLI", pretty_exceptions_show_locals=False)


def _parse_parameters(*, parameters_json: str | None, parameters_file: Path | None) -> dict:
    if parameters_json is not None and parameters_file is not None:
        raise ValueError("Provide only one of --parameters-json or --parameters-file")

    if parameters_json is not None:
        source, text = "--parameters-json", parameters_json
    elif parameters_file is not None:
        source = "--parameters-file"
        try:
            text = parameters_file.read_text()
        except OSError as exc:
            raise ValueError(f"Unable to read {source}: {exc}") from exc
    else:
        return {}

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {source}: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{source} must contain a JSON object")
    return parsed


def _exit_for_domain_error(exc: BrokerException) -> None:
    logger.warning("CLI command failed with broker error: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _echo_yaml_entity(entity: object) -> None:
    encoded = jsonable_encoder(entity, exclude_none=True)
    typer.echo(yaml.safe_dump(encoded, sort_keys=False), nl=False)


@app.command("catalog")
def catalog() -> None:
    _echo_yaml_entity(build_controller().catalog())


@app.command("deployers")
def deployers() -> None:
    _echo_yaml_entity(build_controller().registry.identities())


@app.command("provision")
def provision(
    instance_id: str,
    *,
    service_id: str = typer.Option(..., "--service-id"),
    plan_id: str = typer.Option(..., "--plan-id"),
    namespace: str | None = typer.Option(None, "--namespace", help="Namespace of the requesting user."),
    parameters_json: str | None = typer.Option(
        None,
        "--parameters-json",
        help="JSON object string of provisioning parameters.",
    ),
    parameters_file: Path | None = typer.Option(
        None,
        "--parameters-file",
        help="Path to a JSON file containing provisioning parameters.",
    ),
) -> None:
    try:
        parameters = _parse_parameters(parameters_json=parameters_json, parameters_file=parameters_file)
    except ValueError as e:
        logger.warning("Invalid provisioning parameters: %s", e)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    request = CreateServiceInstanceRequest(
        service_id=service_id,
        plan_id=plan_id,
        context=ContextProfile(namespace=namespace),
        parameters=parameters,
    )
    try:
        result = build_controller().create_service_instance(instance_id, request)
    except BrokerException as e:
        _exit_for_domain_error(e)
    _echo_yaml_entity(result)
    if result.code >= 400:
        typer.echo(f"Error: provisioning of {instance_id} was not accepted (code={result.code})", err=True)
        raise typer.Exit(code=1)


@app.command("poll")
def poll(
    instance_id: str,
    *,
    service_id: str = typer.Option(..., "--service-id"),
    namespace: str | None = typer.Option(None, "--namespace"),
) -> None:
    try:
        status = build_controller().poll_service_instance(
            instance_id,
            service_id,
            ContextProfile(namespace=namespace),
        )
    except BrokerException as e:
        _exit_for_domain_error(e)
    _echo_yaml_entity(status)
    if status.state is OperationState.FAILED:
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(8080, "--port"),
) -> None:
    uvicorn.run(create_app(build_controller()), host=host, port=port, log_level="info")


if __name__ == "__main__":
    app()
