"""Local callback simulator replaying RBM webhook fixtures against the gateway."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, status
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from rcs_gateway.core.config import RbmSettings

from ..utils.security import compute_base64_signature

FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures"
WEBHOOK_PATH = "/api/webhooks/vi-rbm"


class SimulatorSettings(BaseSettings):
    """Environment for the simulator process."""

    model_config = SettingsConfigDict(
        env_prefix="SIM_", env_file=(".env.local", ".env"), case_sensitive=False, extra="ignore"
    )

    target_url: AnyHttpUrl = "http://localhost:3000"
    host: str = "127.0.0.1"
    port: int = 8085


def available_scenarios() -> list[str]:
    return sorted(fixture.stem for fixture in FIXTURE_DIR.glob("*.json"))


def load_scenario(name: str) -> dict[str, Any]:
    fixture_path = FIXTURE_DIR / f"{name}.json"
    if name not in available_scenarios():
        raise KeyError(name)
    return json.loads(fixture_path.read_text(encoding="utf-8"))


def signed_request(payload: dict[str, Any], rbm: RbmSettings) -> tuple[bytes, dict[str, str]]:
    """Serialise ``payload`` and sign it the way the platform would."""

    body = json.dumps(payload).encode("utf-8")
    headers = {"Content-Type": "application/json"}
    if rbm.webhook_secret:
        headers[rbm.webhook_signature_header] = compute_base64_signature(rbm.webhook_secret, body)
    return body, headers


def create_simulator(
    settings: SimulatorSettings | None = None,
    rbm: RbmSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    sim_settings = settings or SimulatorSettings()
    rbm_settings = rbm or RbmSettings()
    app = FastAPI(title="RCS Webhook Simulator", version="0.1.0")

    @app.get("/scenarios")
    async def list_scenarios() -> dict[str, list[str]]:
        return {"scenarios": available_scenarios()}

    @app.post("/callbacks/{scenario}", status_code=status.HTTP_202_ACCEPTED)
    async def trigger_callback(
        scenario: str, message_id: str | None = None, msisdn: str | None = None
    ) -> dict[str, Any]:
        """Replay ``scenario``, optionally re-addressed to a real message or number."""

        try:
            payload = load_scenario(scenario)
        except KeyError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="fixture not found"
            ) from exc

        if message_id:
            payload["messageId"] = message_id
        if msisdn:
            payload["senderPhoneNumber"] = msisdn

        body, headers = signed_request(payload, rbm_settings)
        target = f"{str(sim_settings.target_url).rstrip('/')}{WEBHOOK_PATH}"
        async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
            response = await client.post(target, content=body, headers=headers)

        return {"status": response.status_code, "body": _safe_json(response)}

    return app


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def main() -> None:
    import uvicorn

    settings = SimulatorSettings()
    uvicorn.run(create_simulator(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
