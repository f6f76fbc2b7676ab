import os
import sys
from typing import Optional

import requests
import typer
import yaml

from insights.commons.engine import InsightsEngine
from insights.commons.logger import setup_logging
from insights.helpers.fhir_transport import FHIRClient
from insights.helpers.router import SummaryRouter, render_text
from insights.services.summary_service import SummaryService

app = typer.Typer(add_completion=False, help="VeriInsights observation summary")


def resource_path(relative_path: str) -> str:
    """Absolute path to a bundled resource, whether frozen with PyInstaller or run from source."""
    if hasattr(sys, "_MEIPASS"):
        base_path = sys._MEIPASS
    else:
        base_path = os.path.abspath(".")

    return os.path.join(base_path, relative_path)


def load_cfg(path: Optional[str] = None) -> dict:
    config_path = path or os.getenv("INSIGHTS_CONFIG") or resource_path("insights/configs/settings.yaml")
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _build(cfg: dict, with_client: bool) -> SummaryService:
    engine = InsightsEngine(cfg)
    client = None
    if with_client:
        fhir = engine.settings.fhir
        client = FHIRClient(
            fhir.base_url,
            timeout=fhir.timeout_sec,
            token=fhir.token or os.getenv("FHIR_TOKEN"),
            max_workers=fhir.device_workers,
        )
    return SummaryService(SummaryRouter(engine, client))


@app.command()
def summary(
    patient_id: str = typer.Argument(..., help="FHIR Patient id"),
    config: Optional[str] = typer.Option(None, help="settings.yaml path"),
):
    """Fetch a patient's observations from the FHIR server and print the summary."""
    cfg = load_cfg(config)
    logger = setup_logging(cfg.get("paths", {}).get("logs_root", "logs"), os.getenv("LOG_LEVEL", "INFO"))
    logger.info(f"Building summary for patient {patient_id}")
    svc = _build(cfg, with_client=True)
    try:
        result = svc.run_remote(patient_id)
    except requests.RequestException:
        raise typer.Exit(code=2)
    if result is None:
        raise typer.Exit(code=1)
    typer.echo(render_text(result))


@app.command("classify-file")
def classify_file(
    bundle: str = typer.Argument(..., help="Observation search Bundle (JSON)"),
    patient: Optional[str] = typer.Option(None, help="Patient resource (JSON)"),
    devices: Optional[str] = typer.Option(None, help="Device id -> name map, or a list of Device resources (JSON)"),
    config: Optional[str] = typer.Option(None, help="settings.yaml path"),
):
    """Classify an exported bundle without contacting a server."""
    cfg = load_cfg(config)
    logger = setup_logging(cfg.get("paths", {}).get("logs_root", "logs"), os.getenv("LOG_LEVEL", "INFO"))
    logger.info(f"Classifying {bundle}")
    svc = _build(cfg, with_client=False)
    result = svc.run_file(bundle, patient, devices)
    if result is None:
        raise typer.Exit(code=1)
    typer.echo(render_text(result))


if __name__ == "__main__":
    app()
