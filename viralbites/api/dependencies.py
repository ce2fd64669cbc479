"""FastAPI dependencies that hand out the collaborators built at startup."""

from fastapi import Request

from viralbites.config import Settings
from viralbites.discovery.diagnostics import DiagnosticsRunner
from viralbites.discovery.pipeline import ViralSearchPipeline
from viralbites.oauth.providers import OAuthClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> ViralSearchPipeline:
    return request.app.state.pipeline


def get_diagnostics(request: Request) -> DiagnosticsRunner:
    return request.app.state.diagnostics


def get_oauth_client(request: Request) -> OAuthClient:
    return request.app.state.oauth_client
