from dataclasses import replace
from datetime import timedelta

import pytest
from fastapi import HTTPException

from schemas.user import Actor, LoginRequest, UserRole
from services.auth_service import AuthService


def test_worker_signs_in_by_name(settings):
    actor = AuthService.authenticate(LoginRequest(name="  Sam  "), settings)

    assert actor == Actor(name="Sam", role=UserRole.WORKER)


def test_manager_needs_the_right_pin(settings):
    actor = AuthService.authenticate(LoginRequest(name="Dana", role=UserRole.MANAGER, pin="6767"), settings)
    assert actor.is_manager

    with pytest.raises(HTTPException) as excinfo:
        AuthService.authenticate(LoginRequest(name="Dana", role=UserRole.MANAGER, pin="1234"), settings)
    assert excinfo.value.status_code == 401


def test_blank_name_is_rejected(settings):
    with pytest.raises(HTTPException) as excinfo:
        AuthService.authenticate(LoginRequest(name="   "), settings)
    assert excinfo.value.status_code == 400


def test_token_round_trip(settings):
    actor = Actor(name="Dana", role=UserRole.MANAGER)
    token = AuthService.create_access_token(actor, settings=settings)

    assert AuthService.get_actor_from_token(token, settings) == actor


def test_expired_token_is_rejected(settings):
    token = AuthService.create_access_token(
        Actor(name="Sam", role=UserRole.WORKER), expires_delta=timedelta(minutes=-5), settings=settings
    )

    with pytest.raises(HTTPException) as excinfo:
        AuthService.get_actor_from_token(token, settings)
    assert excinfo.value.status_code == 401


def test_token_signed_with_another_key_is_rejected(settings):
    token = AuthService.create_access_token(Actor(name="Sam", role=UserRole.WORKER), settings=settings)
    other = replace(settings, secret_key="other-secret")

    with pytest.raises(HTTPException):
        AuthService.get_actor_from_token(token, other)
