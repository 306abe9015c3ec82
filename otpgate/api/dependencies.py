"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the domain
service and its collaborators into routes. Collaborators are built once
by the application lifespan and kept on app.state; nothing here is a
module-level singleton.
"""

from datetime import timedelta

from fastapi import Request

from otpgate.config.settings import Settings
from otpgate.domain.auth import AuthService
from otpgate.domain.ports import Notifier, SessionSigner, UserRepository
from otpgate.domain.state_machine import AccountStateMachine


def get_repository(request: Request) -> UserRepository:
    return request.app.state.repository


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_signer(request: Request) -> SessionSigner:
    return request.app.state.signer


def get_settings_from_state(request: Request) -> Settings:
    return request.app.state.settings


def build_auth_service(
    settings: Settings,
    repository: UserRepository,
    notifier: Notifier,
    signer: SessionSigner,
) -> AuthService:
    """Wire the domain service from settings and collaborator instances."""
    state_machine = AccountStateMachine(otp_ttl=timedelta(seconds=settings.otp_ttl_seconds))
    return AuthService(
        repository=repository,
        notifier=notifier,
        signer=signer,
        state_machine=state_machine,
        session_ttl=timedelta(seconds=settings.session_ttl_seconds),
    )


def get_auth_service(request: Request) -> AuthService:
    """
    Create the auth service with injected dependencies.

    Wires together the repository, notifier and signer held on app state.
    """
    return build_auth_service(
        settings=get_settings_from_state(request),
        repository=get_repository(request),
        notifier=get_notifier(request),
        signer=get_signer(request),
    )
