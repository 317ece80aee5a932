"""FastAPI application exposing the email gateway over HTTP."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status as http_status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from workshop_mail.core import AppSettings, SendResult, load_app_settings
from workshop_mail.gateway import EmailGateway

LOGGER = logging.getLogger(__name__)


class SendEmailRequest(BaseModel):
    """Payload for a single transactional email."""

    to: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    html: str = Field(min_length=1)
    text: str | None = None


class WorkshopConfirmationRequest(BaseModel):
    """Payload for a workshop registration confirmation."""

    email: str = Field(min_length=1)
    name: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    template: str = Field(min_length=1)


def _result_response(result: SendResult) -> JSONResponse:
    status_code = (
        http_status.HTTP_200_OK if result.success else http_status.HTTP_502_BAD_GATEWAY
    )
    return JSONResponse(result.as_dict(), status_code=status_code)


def create_app(
    settings: AppSettings | None = None, gateway: EmailGateway | None = None
) -> FastAPI:
    """Create the FastAPI app; the gateway is built from settings when omitted."""
    app_settings = settings or load_app_settings()
    email_gateway = gateway or EmailGateway(app_settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        LOGGER.info("Email gateway running in %s mode", email_gateway.mode)
        yield
        email_gateway.close()

    app = FastAPI(title="Workshop Mail", lifespan=lifespan)
    app.state.gateway = email_gateway

    def get_gateway(request: Request) -> EmailGateway:
        return request.app.state.gateway

    @app.get("/health")
    async def health(
        current: EmailGateway = Depends(get_gateway),
    ) -> dict[str, str]:
        return {"status": "ok", "mode": current.mode}

    @app.post("/api/email/send")
    async def send_email(
        payload: SendEmailRequest,
        current: EmailGateway = Depends(get_gateway),
    ) -> JSONResponse:
        result = await current.send_email(
            to=payload.to,
            subject=payload.subject,
            html=payload.html,
            text=payload.text,
        )
        return _result_response(result)

    @app.post("/api/workshops/confirmation")
    async def workshop_confirmation(
        payload: WorkshopConfirmationRequest,
        current: EmailGateway = Depends(get_gateway),
    ) -> JSONResponse:
        result = await current.send_workshop_confirmation(
            email=payload.email,
            name=payload.name,
            subject=payload.subject,
            template=payload.template,
        )
        return _result_response(result)

    return app


__all__ = ["create_app", "SendEmailRequest", "WorkshopConfirmationRequest"]
